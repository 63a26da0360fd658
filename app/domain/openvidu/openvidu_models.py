"""OpenVidu domain models.

Two families live here:

- Options objects (``SessionProperties``, ``TokenOptions``, ...) produced by
  ``app.domain.openvidu.builders``. They are frozen, use the camelCase names
  of the OpenVidu REST API as aliases, and know how to render themselves as a
  request payload.
- Value objects (``Session``, ``Connection``, ``Publisher``, ``Recording``)
  mapped from OpenVidu JSON responses through their ``from_remote``
  constructors.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.schemas.openvidu_enums import (
    ConnectionType,
    MediaMode,
    OpenViduRole,
    OutputMode,
    RecordingLayout,
    RecordingMode,
    RecordingStatus,
    StreamType,
)

CUSTOM_SESSION_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"
RESOLUTION_PATTERN = r"^\d{2,4}x\d{2,4}$"


def from_epoch_ms(value: Any) -> datetime | None:
    """Convert an OpenVidu millisecond timestamp to an aware UTC datetime."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Ignoring malformed OpenVidu timestamp: {value!r}")
        return None


# ==================== OPTIONS ====================


class _Options(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def option_names(cls) -> set[str]:
        """Keys accepted in a raw option map (aliases and field names)."""
        names: set[str] = set()
        for name, field in cls.model_fields.items():
            names.add(name)
            if field.alias:
                names.add(field.alias)
            if isinstance(field.validation_alias, AliasChoices):
                names.update(
                    choice for choice in field.validation_alias.choices if isinstance(choice, str)
                )
        return names

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SessionProperties(_Options):
    media_mode: MediaMode = MediaMode.ROUTED
    recording_mode: RecordingMode = RecordingMode.MANUAL
    default_output_mode: OutputMode = OutputMode.COMPOSED
    default_recording_layout: RecordingLayout = RecordingLayout.BEST_FIT
    default_custom_layout: str | None = None
    custom_session_id: str | None = Field(
        default=None, min_length=1, max_length=256, pattern=CUSTOM_SESSION_ID_PATTERN
    )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "mediaMode": self.media_mode.value,
            "recordingMode": self.recording_mode.value,
            "defaultRecordingProperties": {
                "outputMode": self.default_output_mode.value,
                "recordingLayout": self.default_recording_layout.value,
            },
        }
        if self.default_custom_layout:
            payload["defaultRecordingProperties"]["customLayout"] = self.default_custom_layout
        if self.custom_session_id:
            payload["customSessionId"] = self.custom_session_id
        return payload


class KurentoOptions(_Options):
    video_max_recv_bandwidth: int | None = Field(default=None, ge=0)
    video_min_recv_bandwidth: int | None = Field(default=None, ge=0)
    video_max_send_bandwidth: int | None = Field(default=None, ge=0)
    video_min_send_bandwidth: int | None = Field(default=None, ge=0)
    allowed_filters: list[str] | None = None


class TokenOptions(_Options):
    role: OpenViduRole = OpenViduRole.PUBLISHER
    data: str | None = None
    record: bool = True
    kurento_options: KurentoOptions | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["type"] = ConnectionType.WEBRTC.value
        return payload


class PublishStreamOptions(_Options):
    """Options to publish an externally produced stream (IP camera) into a session."""

    type: StreamType
    rtsp_uri: str = Field(min_length=1)
    has_audio: bool = True
    has_video: bool = True
    adaptative_bitrate: bool = True
    only_play_with_subscribers: bool = True
    network_cache: int = Field(default=2000, ge=0)
    data: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        # The server publishes external streams through an IPCAM connection,
        # the requested video kind travels alongside it.
        payload["typeOfVideo"] = payload.pop("type")
        payload["type"] = ConnectionType.IPCAM.value
        return payload


class RecordingProperties(_Options):
    session: str = Field(min_length=1, validation_alias=AliasChoices("session", "sessionId"))
    name: str | None = None
    output_mode: OutputMode = OutputMode.COMPOSED
    has_audio: bool = True
    has_video: bool = True
    recording_layout: RecordingLayout | None = None
    custom_layout: str | None = None
    resolution: str | None = Field(default=None, pattern=RESOLUTION_PATTERN)

    @model_validator(mode="after")
    def _check_media(self) -> RecordingProperties:
        if not self.has_audio and not self.has_video:
            raise ValueError("Cannot record a session with both hasAudio and hasVideo set to false")
        if self.custom_layout and self.recording_layout not in (None, RecordingLayout.CUSTOM):
            raise ValueError("customLayout requires recordingLayout CUSTOM")
        return self


class SignalProperties(_Options):
    session: str = Field(min_length=1)
    to: list[str] = Field(default_factory=list)
    type: str | None = None
    data: str | None = None

    @property
    def is_broadcast(self) -> bool:
        return not self.to


# ==================== VALUE OBJECTS ====================


class Publisher(BaseModel):
    stream_id: str
    created_at: datetime | None = None
    has_audio: bool = False
    has_video: bool = False
    audio_active: bool | None = None
    video_active: bool | None = None
    type_of_video: str | None = None
    frame_rate: int | None = None
    video_dimensions: str | None = None

    @classmethod
    def from_remote(cls, data: dict[str, Any]) -> Publisher:
        # Recent servers nest media details under "mediaOptions"
        media = data.get("mediaOptions") or data
        return cls(
            stream_id=data["streamId"],
            created_at=from_epoch_ms(data.get("createdAt")),
            has_audio=bool(media.get("hasAudio", False)),
            has_video=bool(media.get("hasVideo", False)),
            audio_active=media.get("audioActive"),
            video_active=media.get("videoActive"),
            type_of_video=media.get("typeOfVideo"),
            frame_rate=media.get("frameRate"),
            video_dimensions=media.get("videoDimensions"),
        )


class Connection(BaseModel):
    connection_id: str
    session_id: str
    status: str | None = None
    type: ConnectionType = ConnectionType.WEBRTC
    role: OpenViduRole | None = None
    token: str | None = None
    server_data: str | None = None
    client_data: str | None = None
    platform: str | None = None
    location: str | None = None
    record: bool | None = None
    created_at: datetime | None = None
    active_at: datetime | None = None
    publishers: list[Publisher] = Field(default_factory=list)
    subscribers: list[str] = Field(default_factory=list)

    @classmethod
    def from_remote(cls, data: dict[str, Any], session_id: str | None = None) -> Connection:
        subscribers = [
            item["streamId"] if isinstance(item, dict) else str(item)
            for item in data.get("subscribers") or []
        ]
        return cls(
            connection_id=data.get("connectionId") or data["id"],
            session_id=data.get("sessionId") or session_id or "",
            status=data.get("status"),
            type=ConnectionType(data.get("type") or ConnectionType.WEBRTC.value),
            role=data.get("role"),
            token=data.get("token"),
            server_data=data.get("serverData"),
            client_data=data.get("clientData"),
            platform=data.get("platform"),
            location=data.get("location"),
            record=data.get("record"),
            created_at=from_epoch_ms(data.get("createdAt")),
            active_at=from_epoch_ms(data.get("activeAt")),
            publishers=[Publisher.from_remote(item) for item in data.get("publishers") or []],
            subscribers=subscribers,
        )

    def stream_ids(self) -> set[str]:
        return {publisher.stream_id for publisher in self.publishers}


class Session(BaseModel):
    session_id: str
    created_at: datetime | None = None
    properties: SessionProperties = Field(default_factory=SessionProperties)
    connections: list[Connection] = Field(default_factory=list)
    recording: bool = False

    @classmethod
    def from_remote(cls, data: dict[str, Any]) -> Session:
        session_id = data.get("sessionId") or data["id"]
        recording_defaults = data.get("defaultRecordingProperties") or {}
        properties = SessionProperties(
            media_mode=data.get("mediaMode") or MediaMode.ROUTED,
            recording_mode=data.get("recordingMode") or RecordingMode.MANUAL,
            default_output_mode=(
                recording_defaults.get("outputMode")
                or data.get("defaultOutputMode")
                or OutputMode.COMPOSED
            ),
            default_recording_layout=(
                recording_defaults.get("recordingLayout")
                or data.get("defaultRecordingLayout")
                or RecordingLayout.BEST_FIT
            ),
            default_custom_layout=(
                recording_defaults.get("customLayout") or data.get("defaultCustomLayout") or None
            ),
            custom_session_id=data.get("customSessionId") or None,
        )

        connections_data = data.get("connections") or {}
        if isinstance(connections_data, dict):
            connections_data = connections_data.get("content") or []

        return cls(
            session_id=session_id,
            created_at=from_epoch_ms(data.get("createdAt")),
            properties=properties,
            connections=[
                Connection.from_remote(item, session_id=session_id) for item in connections_data
            ],
            recording=bool(data.get("recording", False)),
        )

    def get_connection(self, connection_id: str) -> Connection | None:
        for connection in self.connections:
            if connection.connection_id == connection_id:
                return connection
        return None

    def get_stream_owner(self, stream_id: str) -> Connection | None:
        for connection in self.connections:
            if stream_id in connection.stream_ids():
                return connection
        return None

    def apply_remote(self, remote: Session) -> bool:
        """Replace the mutable state with ``remote``'s; return whether anything changed."""
        before = self.model_dump()
        self.created_at = remote.created_at or self.created_at
        self.properties = remote.properties
        self.connections = remote.connections
        self.recording = remote.recording
        return before != self.model_dump()

    def drop_streams(self, stream_ids: set[str]) -> None:
        """Remove publishers and subscriptions for ``stream_ids`` from every connection."""
        if not stream_ids:
            return
        for connection in self.connections:
            connection.publishers = [
                publisher
                for publisher in connection.publishers
                if publisher.stream_id not in stream_ids
            ]
            connection.subscribers = [
                stream_id for stream_id in connection.subscribers if stream_id not in stream_ids
            ]


class Recording(BaseModel):
    id: str
    session_id: str
    name: str | None = None
    output_mode: OutputMode = OutputMode.COMPOSED
    status: RecordingStatus = RecordingStatus.STARTING
    created_at: datetime | None = None
    size: int | None = None
    duration: float | None = None
    url: str | None = None
    has_audio: bool = True
    has_video: bool = True
    resolution: str | None = None
    recording_layout: RecordingLayout | None = None
    reason: str | None = None

    @classmethod
    def from_remote(cls, data: dict[str, Any]) -> Recording:
        try:
            status = RecordingStatus.parse(data.get("status"))
        except ValueError:
            logger.warning(f"Unknown recording status {data.get('status')!r}, treating as failed")
            status = RecordingStatus.FAILED

        return cls(
            id=data["id"],
            session_id=data.get("sessionId") or data.get("session") or "",
            name=data.get("name"),
            output_mode=data.get("outputMode") or OutputMode.COMPOSED,
            status=status,
            created_at=from_epoch_ms(data.get("createdAt") or data.get("startTime")),
            size=data.get("size"),
            duration=data.get("duration"),
            url=data.get("url") or None,
            has_audio=bool(data.get("hasAudio", True)),
            has_video=bool(data.get("hasVideo", True)),
            resolution=data.get("resolution"),
            recording_layout=data.get("recordingLayout"),
            reason=data.get("reason"),
        )


__all__ = [
    "Connection",
    "KurentoOptions",
    "PublishStreamOptions",
    "Publisher",
    "Recording",
    "RecordingProperties",
    "Session",
    "SessionProperties",
    "SignalProperties",
    "TokenOptions",
    "from_epoch_ms",
]
