"""Shared OpenVidu enumerations.

Webhook event models live in ``app.schemas.openvidu_events`` and are imported
from there directly.
"""

from .openvidu_enums import (
    ConnectionType,
    MediaMode,
    OpenViduRole,
    OutputMode,
    RecordingLayout,
    RecordingMode,
    RecordingStatus,
    StreamType,
    WebhookEventType,
)

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
