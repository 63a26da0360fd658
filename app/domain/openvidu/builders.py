"""Option builders.

Each builder turns a raw option map (usually a decoded JSON body) into a
validated, frozen options object. Builders are pure: no I/O, no shared state.

Usage:
    props = SessionPropertiesBuilder.build({"customSessionId": "room-1"})
    token_options = TokenOptionsBuilder.build({"role": "MODERATOR"}, strict=True)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import ValidationError

from app.schemas.openvidu_enums import StreamType
from app.utils.app_errors import InvalidArgumentError, StreamTypeInvalidError

from .openvidu_models import (
    PublishStreamOptions,
    RecordingProperties,
    SessionProperties,
    SignalProperties,
    TokenOptions,
    _Options,
)

OptionsT = TypeVar("OptionsT", bound=_Options)


def describe_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as ``field: message`` pairs using the option names."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "options"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


class OptionsBuilder(Generic[OptionsT]):
    """Shared validation flow for every builder."""

    model: ClassVar[type[_Options]]
    label: ClassVar[str] = "options"

    @classmethod
    def build(cls, options: Mapping[str, Any] | None, *, strict: bool = False) -> OptionsT:
        raw = cls._as_mapping(options)
        if strict:
            unknown = sorted(set(raw) - cls.model.option_names())
            if unknown:
                raise InvalidArgumentError(f"Unknown {cls.label}: {', '.join(unknown)}")

        try:
            return cls.model.model_validate(raw)  # type: ignore[return-value]
        except ValidationError as exc:
            cls._on_validation_error(raw, exc)
            raise InvalidArgumentError(
                f"Invalid {cls.label}: {describe_validation_error(exc)}"
            ) from exc

    @classmethod
    def _as_mapping(cls, options: Mapping[str, Any] | None) -> dict[str, Any]:
        if options is None:
            return {}
        if not isinstance(options, Mapping):
            raise InvalidArgumentError(
                f"Invalid {cls.label}: expected an object, got {type(options).__name__}"
            )
        return dict(options)

    @classmethod
    def _on_validation_error(cls, raw: dict[str, Any], exc: ValidationError) -> None:
        """Hook for builders that map specific failures to a dedicated error."""


class SessionPropertiesBuilder(OptionsBuilder[SessionProperties]):
    model = SessionProperties
    label = "session properties"


class TokenOptionsBuilder(OptionsBuilder[TokenOptions]):
    model = TokenOptions
    label = "token options"


class PublishStreamBuilder(OptionsBuilder[PublishStreamOptions]):
    model = PublishStreamOptions
    label = "publish options"

    @classmethod
    def _on_validation_error(cls, raw: dict[str, Any], exc: ValidationError) -> None:
        for error in exc.errors():
            if error.get("loc") == ("type",) and error.get("type") != "missing":
                raise StreamTypeInvalidError(raw.get("type"), StreamType.values()) from exc


class RecordingPropertiesBuilder(OptionsBuilder[RecordingProperties]):
    model = RecordingProperties
    label = "recording properties"


class SignalPropertiesBuilder(OptionsBuilder[SignalProperties]):
    model = SignalProperties
    label = "signal properties"

    @classmethod
    def build(cls, options: Mapping[str, Any] | None, *, strict: bool = False) -> SignalProperties:
        if not options:
            raise InvalidArgumentError("Signal payload is empty")
        return super().build(options, strict=strict)


__all__ = [
    "OptionsBuilder",
    "PublishStreamBuilder",
    "RecordingPropertiesBuilder",
    "SessionPropertiesBuilder",
    "SignalPropertiesBuilder",
    "TokenOptionsBuilder",
    "describe_validation_error",
]
