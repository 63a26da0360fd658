"""Keeps the session registry in step with server-pushed webhook events."""

from loguru import logger

from app.schemas.openvidu_enums import WebhookEventType
from app.schemas.openvidu_events import (
    ParticipantLeftEvent,
    RecordingStatusChangedEvent,
    SessionDestroyedEvent,
)

from .registry import SessionRegistry
from .webhook_dispatcher import WebhookEventDispatcher


class RegistryWebhookSync:
    """Subscriber applying sessionDestroyed, participantLeft and
    recordingStatusChanged events to a ``SessionRegistry``."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    def register(self, dispatcher: WebhookEventDispatcher) -> None:
        dispatcher.subscribe(self.on_session_destroyed, WebhookEventType.SESSION_DESTROYED)
        dispatcher.subscribe(self.on_participant_left, WebhookEventType.PARTICIPANT_LEFT)
        dispatcher.subscribe(self.on_recording_status, WebhookEventType.RECORDING_STATUS_CHANGED)

    async def on_session_destroyed(self, event: SessionDestroyedEvent) -> None:
        session_id = event.session_id
        if not session_id:
            return
        async with self.registry.lock(session_id):
            if self.registry.pop(session_id) is not None:
                logger.info(f"Session {session_id} destroyed ({event.reason}), evicted from cache")

    async def on_participant_left(self, event: ParticipantLeftEvent) -> None:
        session_id = event.session_id
        connection_id = event.target_connection_id
        if not session_id or not connection_id:
            return
        async with self.registry.lock(session_id):
            session = self.registry.get(session_id)
            if session is None:
                return
            connection = session.get_connection(connection_id)
            if connection is None:
                return
            session.connections = [
                item for item in session.connections if item.connection_id != connection_id
            ]
            session.drop_streams(connection.stream_ids())
        logger.info(f"Connection {connection_id} left session {session_id} ({event.reason})")

    async def on_recording_status(self, event: RecordingStatusChangedEvent) -> None:
        recording = event.to_recording()
        if recording.session_id not in self.registry:
            self.registry.forget_recording(recording.id)
            return
        async with self.registry.lock(recording.session_id):
            self.registry.track_recording(recording)
        logger.debug(f"Recording {recording.id} is now {recording.status}")
