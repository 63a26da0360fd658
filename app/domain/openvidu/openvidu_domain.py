"""OpenVidu domain service - session registry over the remote control-plane."""

from app.services.integrations.openvidu_client import OpenViduClient

from ._connections import ConnectionOperations
from ._recordings import RecordingOperations
from ._sessions import SessionOperations
from .openvidu_models import (
    Connection,
    PublishStreamOptions,
    Recording,
    RecordingProperties,
    Session,
    SessionProperties,
    SignalProperties,
    TokenOptions,
)
from .registry import SessionRegistry


class OpenViduService:
    """Facade over sessions, connections and recordings.

    One instance owns one ``SessionRegistry``; every returned Session or
    Connection is a copy, callers never touch the cache directly.
    """

    def __init__(self, client: OpenViduClient, registry: SessionRegistry | None = None):
        self.client = client
        self.registry = registry if registry is not None else SessionRegistry()
        self._sessions = SessionOperations(client, self.registry)
        self._connections = ConnectionOperations(client, self.registry)
        self._recordings = RecordingOperations(client, self.registry)

    # ==================== SESSIONS ====================

    async def create_session(self, props: SessionProperties) -> Session:
        """Create a session.

        Idempotent by ``customSessionId``: a cached session with that id is
        returned without calling the server.
        """
        return await self._sessions.create_session(props)

    def get_session(self, session_id: str) -> Session:
        """Get a cached session.

        Raises SessionNotFoundError if the session is unknown locally.
        """
        return self._sessions.get_session(session_id)

    def get_active_sessions(self) -> list[Session]:
        return self._sessions.get_active_sessions()

    def get_active_connections(self, session_id: str) -> list[Connection]:
        return self._sessions.get_active_connections(session_id)

    def is_being_recorded(self, session_id: str) -> bool:
        return self._sessions.is_being_recorded(session_id)

    async def fetch(self, session_id: str) -> tuple[Session, bool]:
        """Refresh a session from the server, returning it and whether it changed."""
        return await self._sessions.fetch(session_id)

    async def fetch_all(self) -> bool:
        return await self._sessions.fetch_all()

    async def close(self, session_id: str) -> bool:
        """Close a session.

        Raises OpenViduException if the server rejects the call.
        """
        return await self._sessions.close(session_id)

    # ==================== CONNECTIONS ====================

    async def generate_token(self, session_id: str, options: TokenOptions) -> str:
        return await self._connections.generate_token(session_id, options)

    async def publish(self, session_id: str, options: PublishStreamOptions) -> Connection:
        """Publish an external stream into a session as a new IPCAM connection."""
        return await self._connections.publish(session_id, options)

    async def force_unpublish(self, session_id: str, stream_id: str) -> bool:
        return await self._connections.force_unpublish(session_id, stream_id)

    async def force_disconnect(self, session_id: str, connection_id: str) -> bool:
        """Disconnect a participant.

        Raises ConnectionNotFoundError if the connection is not cached.
        """
        return await self._connections.force_disconnect(session_id, connection_id)

    async def send_signal(self, props: SignalProperties) -> bool:
        return await self._connections.send_signal(props)

    # ==================== RECORDINGS ====================

    async def start_recording(self, props: RecordingProperties) -> Recording:
        return await self._recordings.start_recording(props)

    async def stop_recording(self, recording_id: str) -> Recording:
        return await self._recordings.stop_recording(recording_id)

    async def get_recording(self, recording_id: str) -> Recording:
        """Get a recording from the server.

        Raises RecordingNotFoundError if the server does not know it.
        """
        return await self._recordings.get_recording(recording_id)

    async def list_recordings(self) -> list[Recording]:
        return await self._recordings.list_recordings()

    async def delete_recording(self, recording_id: str) -> bool:
        return await self._recordings.delete_recording(recording_id)
