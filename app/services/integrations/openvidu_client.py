"""OpenVidu REST client.

This module provides a thin async wrapper around the OpenVidu REST API
(``/openvidu/api``) built on ``httpx``. It is stateless: it maps JSON
responses into the value objects of ``app.domain.openvidu.openvidu_models``
and turns every failed call into an ``OpenViduException``. Caching and
locking belong to ``OpenViduService``.

References:
- https://docs.openvidu.io/en/stable/reference-docs/REST-API/

Usage:
    client = OpenViduClient.from_config(get_app_environ_config())
    session = await client.create_session(SessionProperties())
    recording = await client.start_recording(
        RecordingProperties(session=session.session_id)
    )
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import httpx
import orjson
from loguru import logger

from app.app_config import AppEnvironConfig
from app.domain.openvidu.openvidu_models import (
    Connection,
    PublishStreamOptions,
    Recording,
    RecordingProperties,
    Session,
    SessionProperties,
    SignalProperties,
    TokenOptions,
)
from app.utils.app_errors import (
    AppError,
    AppErrorCode,
    HttpStatusCode,
    OpenViduException,
    RecordingNotFoundError,
    SessionNotFoundError,
)

OPENVIDU_USERNAME = "OPENVIDUAPP"
API_PREFIX = "/openvidu/api"


def _remote_message(response: httpx.Response) -> str:
    """Extract the ``message`` field OpenVidu puts in error bodies, or the raw text."""
    text = response.text
    if not text:
        return "no response body"
    try:
        body = orjson.loads(text)
    except orjson.JSONDecodeError:
        return text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return text


class OpenViduClient:
    """Async client for one OpenVidu deployment (single base URL and secret)."""

    def __init__(
        self,
        base_url: str,
        secret: str,
        *,
        timeout: float = 10.0,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._secret = secret
        self.timeout = timeout
        self._verify = verify
        # Tests inject httpx.MockTransport here
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        cfg: AppEnvironConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> OpenViduClient:
        if not cfg.OPENVIDU_SECRET:
            logger.error("OPENVIDU_SECRET not configured")
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="OpenVidu secret must be configured. Set it in env.local or environment variables.",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        return cls(
            cfg.OPENVIDU_URL,
            cfg.OPENVIDU_SECRET,
            timeout=cfg.OPENVIDU_TIMEOUT_SECONDS,
            verify=cfg.OPENVIDU_VERIFY_SSL,
            transport=transport,
        )

    @asynccontextmanager
    async def _get_http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=(OPENVIDU_USERNAME, self._secret),
            timeout=self.timeout,
            verify=self._verify,
            transport=self._transport,
        ) as client:
            yield client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = f"{API_PREFIX}{path}"
        logger.debug(f"OpenVidu {method} {url} payload={json}")

        try:
            async with self._get_http_client() as client:
                response = await client.request(method, url, json=json)
        except httpx.TimeoutException as exc:
            logger.warning(f"OpenVidu {method} {url} timed out after {self.timeout}s")
            raise OpenViduException(
                f"OpenVidu did not answer {method} {url} within {self.timeout}s",
                retryable=True,
                errcode=AppErrorCode.E_OPENVIDU_TIMEOUT,
                status_code=HttpStatusCode.GATEWAY_TIMEOUT,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(f"OpenVidu {method} {url} transport error: {exc!r}")
            raise OpenViduException(
                f"OpenVidu is unreachable: {exc}",
                retryable=True,
                errcode=AppErrorCode.E_OPENVIDU_UNAVAILABLE,
                status_code=HttpStatusCode.BAD_GATEWAY,
            ) from exc

        if response.is_success:
            logger.debug(f"OpenVidu {method} {url} -> {response.status_code}")
            return response

        message = _remote_message(response)
        log_msg = f"OpenVidu {method} {url} -> {response.status_code}: {message}"
        if response.status_code >= 500:
            logger.error(log_msg)
        else:
            logger.warning(log_msg)

        raise OpenViduException(
            f"OpenVidu responded {response.status_code} to {method} {url}: {message}",
            upstream_status=response.status_code,
            upstream_body=response.text,
        )

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as exc:
            raise OpenViduException(
                f"OpenVidu returned a malformed body: {response.text[:200]}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            ) from exc
        if not isinstance(data, dict):
            raise OpenViduException(
                "OpenVidu returned an unexpected body",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )
        return data

    @staticmethod
    @contextmanager
    def _mapping(response: httpx.Response) -> Iterator[None]:
        """Report a body that does not fit the value objects as an OpenVidu failure."""
        try:
            yield
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(f"Unexpected OpenVidu body for {response.request.url.path}: {exc}")
            raise OpenViduException(
                f"OpenVidu returned an unexpected body: {exc}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            ) from exc

    # ==================== SESSIONS ====================

    async def create_session(self, props: SessionProperties) -> Session:
        """Create a session.

        A 409 (custom session id already in use) surfaces as an
        ``OpenViduException`` with ``upstream_status == 409``.
        """
        response = await self._request("POST", "/sessions", json=props.to_payload())
        data = self._json(response)
        with self._mapping(response):
            session = Session.from_remote(data)
        # Creation responses may omit the properties that were sent
        if "mediaMode" not in data:
            session.properties = props
        return session

    async def get_session(self, session_id: str) -> Session:
        try:
            response = await self._request("GET", f"/sessions/{session_id}")
        except OpenViduException as exc:
            if exc.upstream_status == HttpStatusCode.NOT_FOUND:
                raise SessionNotFoundError(session_id) from exc
            raise
        with self._mapping(response):
            return Session.from_remote(self._json(response))

    async def list_sessions(self) -> list[Session]:
        response = await self._request("GET", "/sessions")
        with self._mapping(response):
            return [Session.from_remote(item) for item in self._json(response).get("content") or []]

    async def close_session(self, session_id: str) -> None:
        await self._request("DELETE", f"/sessions/{session_id}")

    # ==================== CONNECTIONS ====================

    async def create_connection(self, session_id: str, options: TokenOptions) -> Connection:
        """Create a pending WebRTC connection; its ``token`` is what clients join with."""
        response = await self._request(
            "POST", f"/sessions/{session_id}/connection", json=options.to_payload()
        )
        with self._mapping(response):
            return Connection.from_remote(self._json(response), session_id=session_id)

    async def publish_stream(self, session_id: str, options: PublishStreamOptions) -> Connection:
        response = await self._request(
            "POST", f"/sessions/{session_id}/connection", json=options.to_payload()
        )
        with self._mapping(response):
            return Connection.from_remote(self._json(response), session_id=session_id)

    async def force_disconnect(self, session_id: str, connection_id: str) -> None:
        await self._request("DELETE", f"/sessions/{session_id}/connection/{connection_id}")

    async def force_unpublish(self, session_id: str, stream_id: str) -> None:
        await self._request("DELETE", f"/sessions/{session_id}/stream/{stream_id}")

    async def send_signal(self, props: SignalProperties) -> None:
        await self._request("POST", "/signal", json=props.to_payload())

    # ==================== RECORDINGS ====================

    async def _recording_call(
        self,
        method: str,
        path: str,
        recording_id: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            return await self._request(method, path, json=json)
        except OpenViduException as exc:
            if exc.upstream_status == HttpStatusCode.NOT_FOUND:
                raise RecordingNotFoundError(recording_id) from exc
            raise

    async def start_recording(self, props: RecordingProperties) -> Recording:
        response = await self._request("POST", "/recordings/start", json=props.to_payload())
        with self._mapping(response):
            return Recording.from_remote(self._json(response))

    async def stop_recording(self, recording_id: str) -> Recording:
        response = await self._recording_call(
            "POST", f"/recordings/stop/{recording_id}", recording_id
        )
        with self._mapping(response):
            return Recording.from_remote(self._json(response))

    async def get_recording(self, recording_id: str) -> Recording:
        response = await self._recording_call("GET", f"/recordings/{recording_id}", recording_id)
        with self._mapping(response):
            return Recording.from_remote(self._json(response))

    async def list_recordings(self) -> list[Recording]:
        response = await self._request("GET", "/recordings")
        with self._mapping(response):
            return [Recording.from_remote(item) for item in self._json(response).get("items") or []]

    async def delete_recording(self, recording_id: str) -> None:
        await self._recording_call("DELETE", f"/recordings/{recording_id}", recording_id)
