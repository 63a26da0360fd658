"""Session operations."""

from loguru import logger

from app.utils.app_errors import HttpStatusCode, OpenViduException, SessionNotFoundError

from ._base import BaseService
from .openvidu_models import Connection, Session, SessionProperties


class SessionOperations(BaseService):
    """Session lifecycle and cache refresh."""

    async def create_session(self, props: SessionProperties) -> Session:
        """
        Create a session or return the cached one with the same custom id.

        A custom id the server already knows (409) but the cache does not, e.g.
        after a restart, is resolved by fetching that session.
        """
        custom_id = props.custom_session_id
        if custom_id is None:
            session = await self.client.create_session(props)
            self.registry.put(session)
            logger.info(f"Created session {session.session_id}")
            return session.model_copy(deep=True)

        async with self.registry.lock(custom_id):
            cached = self.registry.get(custom_id)
            if cached is not None:
                logger.debug(f"Session {custom_id} already cached, skipping remote create")
                return cached.model_copy(deep=True)

            try:
                session = await self.client.create_session(props)
                logger.info(f"Created session {session.session_id}")
            except OpenViduException as exc:
                if exc.upstream_status != HttpStatusCode.CONFLICT:
                    raise
                logger.info(f"Session {custom_id} already exists on the server, adopting it")
                session = await self.client.get_session(custom_id)

            self.registry.put(session)
            return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> Session:
        return self._require_session(session_id).model_copy(deep=True)

    def get_active_sessions(self) -> list[Session]:
        """Cached sessions in creation order. Does not query the server."""
        return [session.model_copy(deep=True) for session in self.registry.sessions()]

    def get_active_connections(self, session_id: str) -> list[Connection]:
        session = self._require_session(session_id)
        return [connection.model_copy(deep=True) for connection in session.connections]

    def is_being_recorded(self, session_id: str) -> bool:
        return self._require_session(session_id).recording

    async def fetch(self, session_id: str) -> tuple[Session, bool]:
        """
        Refresh one cached session from the server.

        Returns:
            The refreshed session copy and whether anything changed

        Raises:
            SessionNotFoundError: If the session is not cached, or no longer
                exists on the server (it is then evicted)
        """
        async with self.registry.lock(session_id):
            cached = self._require_session(session_id)
            try:
                remote = await self.client.get_session(session_id)
            except SessionNotFoundError:
                logger.warning(f"Session {session_id} vanished from the server, evicting")
                self.registry.pop(session_id)
                raise

            has_changes = cached.apply_remote(remote)
            if has_changes:
                logger.debug(f"Session {session_id} changed on the server")
            return cached.model_copy(deep=True), has_changes

    async def fetch_all(self) -> bool:
        """
        Refresh every session from the server list: update cached ones, adopt
        unknown ones and evict those the server no longer reports.

        Returns:
            Whether the cache changed
        """
        remote_sessions = await self.client.list_sessions()
        remote_ids = {session.session_id for session in remote_sessions}
        has_changes = False

        for remote in remote_sessions:
            async with self.registry.lock(remote.session_id):
                cached = self.registry.get(remote.session_id)
                if cached is None:
                    self.registry.put(remote)
                    has_changes = True
                elif cached.apply_remote(remote):
                    has_changes = True

        for session_id in self.registry.session_ids():
            if session_id in remote_ids:
                continue
            async with self.registry.lock(session_id):
                if self.registry.pop(session_id) is not None:
                    logger.info(f"Session {session_id} no longer on the server, evicted")
                    has_changes = True

        return has_changes

    async def close(self, session_id: str) -> bool:
        """Close a session on the server and evict it from the cache.

        Raises OpenViduException if the server rejects the call; the cache is
        left untouched in that case.
        """
        async with self.registry.lock(session_id):
            self._require_session(session_id)
            await self.client.close_session(session_id)
            self.registry.pop(session_id)

        logger.info(f"Closed session {session_id}")
        return True
