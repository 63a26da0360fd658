"""Enumerations shared by OpenVidu options, value objects and webhook events.

Values match the strings used by the OpenVidu REST API.
"""

from enum import Enum


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class MediaMode(_StrEnum):
    ROUTED = "ROUTED"
    RELAYED = "RELAYED"


class RecordingMode(_StrEnum):
    ALWAYS = "ALWAYS"
    MANUAL = "MANUAL"


class OutputMode(_StrEnum):
    COMPOSED = "COMPOSED"
    COMPOSED_QUICK_START = "COMPOSED_QUICK_START"
    INDIVIDUAL = "INDIVIDUAL"


class RecordingLayout(_StrEnum):
    BEST_FIT = "BEST_FIT"
    PICTURE_IN_PICTURE = "PICTURE_IN_PICTURE"
    VERTICAL_PRESENTATION = "VERTICAL_PRESENTATION"
    HORIZONTAL_PRESENTATION = "HORIZONTAL_PRESENTATION"
    CUSTOM = "CUSTOM"


class OpenViduRole(_StrEnum):
    SUBSCRIBER = "SUBSCRIBER"
    PUBLISHER = "PUBLISHER"
    MODERATOR = "MODERATOR"


class StreamType(_StrEnum):
    """Kind of video a published stream carries."""

    CAMERA = "CAMERA"
    SCREEN = "SCREEN"
    CUSTOM = "CUSTOM"


class ConnectionType(_StrEnum):
    WEBRTC = "WEBRTC"
    IPCAM = "IPCAM"


class RecordingStatus(_StrEnum):
    """Recording lifecycle.

    starting → started → stopped → ready
        ↓          ↓         ↓
      failed     failed    failed

    Only ``starting`` and ``started`` recordings are kept in the local cache.
    """

    STARTING = "starting"
    STARTED = "started"
    STOPPED = "stopped"
    READY = "ready"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: str | None) -> "RecordingStatus":
        if not value:
            return cls.STARTING
        normalized = value.strip().lower()
        # Servers before 2.16 report finished recordings as "available"
        if normalized == "available":
            return cls.READY
        return cls(normalized)

    @property
    def is_active(self) -> bool:
        return self in (RecordingStatus.STARTING, RecordingStatus.STARTED)


class WebhookEventType(_StrEnum):
    SESSION_CREATED = "sessionCreated"
    SESSION_DESTROYED = "sessionDestroyed"
    PARTICIPANT_JOINED = "participantJoined"
    PARTICIPANT_LEFT = "participantLeft"
    WEBRTC_CONNECTION_CREATED = "webrtcConnectionCreated"
    WEBRTC_CONNECTION_DESTROYED = "webrtcConnectionDestroyed"
    RECORDING_STATUS_CHANGED = "recordingStatusChanged"
    SIGNAL_SENT = "signalSent"
    FILTER_EVENT_DISPATCHED = "filterEventDispatched"


__all__ = [
    "ConnectionType",
    "MediaMode",
    "OpenViduRole",
    "OutputMode",
    "RecordingLayout",
    "RecordingMode",
    "RecordingStatus",
    "StreamType",
    "WebhookEventType",
]
