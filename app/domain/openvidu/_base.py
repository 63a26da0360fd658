"""Base service for OpenVidu operations."""

from app.services.integrations.openvidu_client import OpenViduClient
from app.utils.app_errors import SessionNotFoundError

from .openvidu_models import Session
from .registry import SessionRegistry


class BaseService:
    """Base service with shared session lookup helpers.

    The client and the registry are injected so that every operation class of
    one ``OpenViduService`` shares the same cache.
    """

    def __init__(self, client: OpenViduClient, registry: SessionRegistry):
        self.client = client
        self.registry = registry

    def _require_session(self, session_id: str) -> Session:
        """
        Retrieve a cached session.

        Args:
            session_id: The session identifier

        Returns:
            The cached Session object (not a copy)

        Raises:
            SessionNotFoundError: If the session is not in the local cache
        """
        session = self.registry.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session
