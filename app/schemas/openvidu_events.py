"""OpenVidu webhook event schemas.

Pydantic models for the events the OpenVidu server POSTs to the configured
webhook endpoint. Field names follow the camelCase JSON of the server;
unknown fields are kept so newer server versions do not break parsing.

References:
- https://docs.openvidu.io/en/stable/reference-docs/openvidu-server-webhook/
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain.openvidu.openvidu_models import Recording, from_epoch_ms

from .openvidu_enums import WebhookEventType


class WebhookEvent(BaseModel):
    """Fields common to every event. Also used for event types we do not model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    event: str
    session_id: str | None = None
    unique_session_id: str | None = None
    timestamp: datetime | None = None

    @field_validator("timestamp", "start_time", mode="before", check_fields=False)
    @classmethod
    def _parse_epoch_ms(cls, value: Any) -> datetime | None:
        if isinstance(value, (int, float, str)) and not isinstance(value, bool):
            return from_epoch_ms(value)
        return value

    @property
    def event_type(self) -> WebhookEventType | None:
        try:
            return WebhookEventType(self.event)
        except ValueError:
            return None


class _ClosingEvent(WebhookEvent):
    start_time: datetime | None = None
    duration: float | None = None
    reason: str | None = None


class SessionCreatedEvent(WebhookEvent):
    pass


class SessionDestroyedEvent(_ClosingEvent):
    pass


class ParticipantJoinedEvent(WebhookEvent):
    participant_id: str | None = None
    connection_id: str | None = None
    location: str | None = None
    platform: str | None = None
    client_data: str | None = None
    server_data: str | None = None

    @property
    def target_connection_id(self) -> str | None:
        # Servers before 2.16 only send participantId
        return self.connection_id or self.participant_id


class ParticipantLeftEvent(_ClosingEvent, ParticipantJoinedEvent):
    pass


class WebrtcConnectionCreatedEvent(WebhookEvent):
    participant_id: str | None = None
    connection_id: str | None = None
    connection: str | None = None
    receiving_from: str | None = None
    stream_id: str | None = None
    audio_enabled: bool | None = None
    video_enabled: bool | None = None
    video_source: str | None = None
    video_framerate: int | None = None
    video_dimensions: str | None = None


class WebrtcConnectionDestroyedEvent(_ClosingEvent, WebrtcConnectionCreatedEvent):
    pass


class RecordingStatusChangedEvent(_ClosingEvent):
    id: str
    name: str | None = None
    output_mode: str | None = None
    resolution: str | None = None
    recording_layout: str | None = None
    has_audio: bool | None = None
    has_video: bool | None = None
    size: int | None = None
    url: str | None = None
    status: str | None = None

    def to_recording(self) -> Recording:
        data = self.model_dump(by_alias=True, exclude_none=True, exclude={"timestamp", "start_time"})
        recording = Recording.from_remote(data)
        recording.created_at = self.start_time
        return recording


class SignalSentEvent(WebhookEvent):
    from_: str | None = Field(default=None, alias="from")
    to: list[str] = Field(default_factory=list)
    type: str | None = None
    data: str | None = None


class FilterEventDispatchedEvent(WebhookEvent):
    participant_id: str | None = None
    connection_id: str | None = None
    stream_id: str | None = None
    filter_type: str | None = None
    event_type_name: str | None = Field(default=None, alias="eventType")
    data: Any = None


EVENT_MODELS: dict[WebhookEventType, type[WebhookEvent]] = {
    WebhookEventType.SESSION_CREATED: SessionCreatedEvent,
    WebhookEventType.SESSION_DESTROYED: SessionDestroyedEvent,
    WebhookEventType.PARTICIPANT_JOINED: ParticipantJoinedEvent,
    WebhookEventType.PARTICIPANT_LEFT: ParticipantLeftEvent,
    WebhookEventType.WEBRTC_CONNECTION_CREATED: WebrtcConnectionCreatedEvent,
    WebhookEventType.WEBRTC_CONNECTION_DESTROYED: WebrtcConnectionDestroyedEvent,
    WebhookEventType.RECORDING_STATUS_CHANGED: RecordingStatusChangedEvent,
    WebhookEventType.SIGNAL_SENT: SignalSentEvent,
    WebhookEventType.FILTER_EVENT_DISPATCHED: FilterEventDispatchedEvent,
}


def parse_webhook_event(payload: dict[str, Any]) -> WebhookEvent:
    """Parse a decoded webhook body into its typed event model.

    Raises:
        ValueError: If the payload has no ``event`` field
        pydantic.ValidationError: If the payload does not match the event model
    """
    event_name = payload.get("event")
    if not event_name:
        raise ValueError("Missing 'event' field")

    try:
        model = EVENT_MODELS[WebhookEventType(event_name)]
    except ValueError:
        model = WebhookEvent
    return model.model_validate(payload)


__all__ = [
    "EVENT_MODELS",
    "FilterEventDispatchedEvent",
    "ParticipantJoinedEvent",
    "ParticipantLeftEvent",
    "RecordingStatusChangedEvent",
    "SessionCreatedEvent",
    "SessionDestroyedEvent",
    "SignalSentEvent",
    "WebhookEvent",
    "WebrtcConnectionCreatedEvent",
    "WebrtcConnectionDestroyedEvent",
    "parse_webhook_event",
]
