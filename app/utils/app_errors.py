"""Application error taxonomy.

Every error raised by the domain and service layers derives from ``AppError``
and is rendered by ``app.api.v1.errors.app_error_handler`` as an ``ApiFailure``
envelope with the error's ``status_code``.
"""

from __future__ import annotations

import inspect
from enum import Enum, IntEnum
from typing import Any
from uuid import uuid4

from app.shared.api.errors import E_INTERNAL, E_INVALID_PARAMS


class HttpStatusCode(IntEnum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504


class AppErrorCode(str, Enum):
    E_INTERNAL_ERROR = E_INTERNAL
    E_INVALID_PARAMS = E_INVALID_PARAMS
    E_INVALID_REQUEST = "E_INVALID_REQUEST"

    # Option validation
    E_INVALID_ARGUMENT = "E_INVALID_ARGUMENT"
    E_STREAM_TYPE_INVALID = "E_STREAM_TYPE_INVALID"

    # Local cache lookups
    E_SESSION_NOT_FOUND = "E_SESSION_NOT_FOUND"
    E_CONNECTION_NOT_FOUND = "E_CONNECTION_NOT_FOUND"
    E_RECORDING_NOT_FOUND = "E_RECORDING_NOT_FOUND"

    # Remote OpenVidu server
    E_OPENVIDU_ERROR = "E_OPENVIDU_ERROR"
    E_OPENVIDU_TIMEOUT = "E_OPENVIDU_TIMEOUT"
    E_OPENVIDU_UNAVAILABLE = "E_OPENVIDU_UNAVAILABLE"

    # Webhooks
    E_WEBHOOK_INVALID_JSON = "E_WEBHOOK_INVALID_JSON"
    E_WEBHOOK_MISSING_EVENT_TYPE = "E_WEBHOOK_MISSING_EVENT_TYPE"
    E_WEBHOOK_VALIDATION_ERROR = "E_WEBHOOK_VALIDATION_ERROR"
    E_WEBHOOK_ERROR = "E_WEBHOOK_ERROR"

    def __str__(self) -> str:
        return self.value


def _raise_site() -> str:
    """Return ``module:function:line`` of the code that raised the error."""
    frame = inspect.currentframe()
    # Skip this helper and every __init__ in the AppError hierarchy
    while frame is not None and frame.f_globals.get("__name__") == __name__:
        frame = frame.f_back
    if frame is None:
        return "unknown"
    module_name = frame.f_globals.get("__name__", frame.f_code.co_filename)
    return f"{module_name}:{frame.f_code.co_name}:{frame.f_lineno}"


class AppError(Exception):
    """Base error carrying an error code, a message and an HTTP status."""

    def __init__(
        self,
        errcode: AppErrorCode | str,
        errmesg: str,
        status_code: HttpStatusCode | int = HttpStatusCode.BAD_REQUEST,
    ) -> None:
        self.errcode = errcode.value if isinstance(errcode, AppErrorCode) else str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]
        self.caller_info = _raise_site()
        super().__init__(errmesg)

    def __str__(self) -> str:
        return f"{self.errcode}: {self.errmesg}"


class InvalidArgumentError(AppError):
    """A caller supplied option is missing, malformed or outside its allowed set."""

    def __init__(self, errmesg: str) -> None:
        super().__init__(AppErrorCode.E_INVALID_ARGUMENT, errmesg, HttpStatusCode.BAD_REQUEST)


class StreamTypeInvalidError(AppError):
    def __init__(self, stream_type: Any, allowed: list[str]) -> None:
        self.stream_type = stream_type
        super().__init__(
            AppErrorCode.E_STREAM_TYPE_INVALID,
            f"Stream type {stream_type!r} is not supported, expected one of {', '.join(allowed)}",
            HttpStatusCode.BAD_REQUEST,
        )


class SessionNotFoundError(AppError):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(
            AppErrorCode.E_SESSION_NOT_FOUND,
            f"Session '{session_id}' not found",
            HttpStatusCode.NOT_FOUND,
        )


class ConnectionNotFoundError(AppError):
    def __init__(self, session_id: str, target_id: str, kind: str = "Connection") -> None:
        self.session_id = session_id
        self.target_id = target_id
        super().__init__(
            AppErrorCode.E_CONNECTION_NOT_FOUND,
            f"{kind} '{target_id}' not found in session '{session_id}'",
            HttpStatusCode.NOT_FOUND,
        )


class RecordingNotFoundError(AppError):
    def __init__(self, recording_id: str) -> None:
        self.recording_id = recording_id
        super().__init__(
            AppErrorCode.E_RECORDING_NOT_FOUND,
            f"Recording '{recording_id}' not found",
            HttpStatusCode.NOT_FOUND,
        )


class OpenViduException(AppError):
    """The OpenVidu server could not be reached or gave an unusable answer.

    Unusable means a non-2xx status or a body that does not map onto the value
    objects.

    ``upstream_status`` and ``upstream_body`` hold the remote response for
    diagnostics. ``retryable`` is set for timeouts and transport failures; the
    service never retries on its own.
    """

    def __init__(
        self,
        errmesg: str,
        *,
        upstream_status: int | None = None,
        upstream_body: str | None = None,
        retryable: bool = False,
        errcode: AppErrorCode = AppErrorCode.E_OPENVIDU_ERROR,
        status_code: HttpStatusCode | int = HttpStatusCode.BAD_GATEWAY,
    ) -> None:
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        self.retryable = retryable
        super().__init__(errcode, errmesg, status_code)


__all__ = [
    "AppError",
    "AppErrorCode",
    "ConnectionNotFoundError",
    "HttpStatusCode",
    "InvalidArgumentError",
    "OpenViduException",
    "RecordingNotFoundError",
    "SessionNotFoundError",
    "StreamTypeInvalidError",
]
