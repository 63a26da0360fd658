from datetime import datetime
from typing import Any

from pydantic import Field

from app.domain.openvidu.openvidu_models import (
    Connection,
    Recording,
    Session,
    SessionProperties,
)

from .base import CamelModel

# ==================== INPUT ====================


class GenerateTokenIn(CamelModel):
    session: dict[str, Any] | None = Field(
        default=None,
        description="Raw session options; the session is created unless customSessionId is known",
    )
    token_options: dict[str, Any] | None = Field(
        default=None, description="Raw token options: role, data, record, kurentoOptions"
    )


# ==================== VALUE OBJECTS ====================


class PublisherOut(CamelModel):
    stream_id: str
    created_at: datetime | None = None
    has_audio: bool = False
    has_video: bool = False
    audio_active: bool | None = None
    video_active: bool | None = None
    type_of_video: str | None = None
    frame_rate: int | None = None
    video_dimensions: str | None = None


class ConnectionOut(CamelModel):
    connection_id: str
    session_id: str
    status: str | None = None
    type: str
    role: str | None = None
    token: str | None = None
    server_data: str | None = None
    client_data: str | None = None
    platform: str | None = None
    location: str | None = None
    record: bool | None = None
    created_at: datetime | None = None
    active_at: datetime | None = None
    publishers: list[PublisherOut] = Field(default_factory=list)
    subscribers: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, connection: Connection) -> "ConnectionOut":
        return cls.model_validate(connection.model_dump(mode="json"))


class SessionOut(CamelModel):
    session_id: str
    created_at: datetime | None = None
    properties: SessionProperties
    connections: list[ConnectionOut] = Field(default_factory=list)
    recording: bool = False

    @classmethod
    def from_domain(cls, session: Session) -> "SessionOut":
        return cls.model_validate(session.model_dump(mode="json"))


class RecordingOut(CamelModel):
    id: str
    session_id: str
    name: str | None = None
    output_mode: str
    status: str
    created_at: datetime | None = None
    size: int | None = None
    duration: float | None = None
    url: str | None = None
    has_audio: bool = True
    has_video: bool = True
    resolution: str | None = None
    recording_layout: str | None = None
    reason: str | None = None

    @classmethod
    def from_domain(cls, recording: Recording) -> "RecordingOut":
        return cls.model_validate(recording.model_dump(mode="json"))


# ==================== RESULTS ====================


class SessionResultOut(CamelModel):
    session: SessionOut


class SessionListOut(CamelModel):
    sessions: list[SessionOut]


class ConnectionListOut(CamelModel):
    connections: list[ConnectionOut]


class ConnectionResultOut(CamelModel):
    connection: ConnectionOut


class TokenOut(CamelModel):
    token: str


class ClosedOut(CamelModel):
    closed: bool


class FetchSessionOut(CamelModel):
    session: SessionOut
    has_changes: bool


class FetchAllOut(CamelModel):
    has_changes: bool


class RecordingStatusOut(CamelModel):
    is_being_recording: bool


class UnpublishedOut(CamelModel):
    unpublished: bool = True


class DisconnectedOut(CamelModel):
    disconnected: bool = True


class RecordingResultOut(CamelModel):
    recording: RecordingOut


class RecordingListOut(CamelModel):
    recordings: list[RecordingOut]


class RecordingDeletedOut(CamelModel):
    recording: bool


class SignalSentOut(CamelModel):
    sent: bool


class WebhookAcceptedOut(CamelModel):
    event: str
    session_id: str | None = None
    queued: bool = True
