"""Connection, stream and signal operations."""

from loguru import logger

from app.utils.app_errors import ConnectionNotFoundError, OpenViduException

from ._base import BaseService
from .openvidu_models import Connection, PublishStreamOptions, SignalProperties, TokenOptions


class ConnectionOperations(BaseService):
    """Connection-related operations."""

    async def generate_token(self, session_id: str, options: TokenOptions) -> str:
        """
        Create a pending WebRTC connection and return its join token.

        Raises:
            SessionNotFoundError: If the session is not cached
            OpenViduException: If the server rejects the call
        """
        async with self.registry.lock(session_id):
            session = self._require_session(session_id)
            connection = await self.client.create_connection(session_id, options)
            session.connections.append(connection)

        if not connection.token:
            raise OpenViduException(
                f"OpenVidu created connection {connection.connection_id} without a token"
            )
        logger.info(
            f"Issued {options.role} token for session {session_id} "
            f"(connection {connection.connection_id})"
        )
        return connection.token

    async def publish(self, session_id: str, options: PublishStreamOptions) -> Connection:
        async with self.registry.lock(session_id):
            session = self._require_session(session_id)
            connection = await self.client.publish_stream(session_id, options)
            session.connections.append(connection)

        logger.info(
            f"Published {options.type} stream into session {session_id} "
            f"(connection {connection.connection_id})"
        )
        return connection.model_copy(deep=True)

    async def force_unpublish(self, session_id: str, stream_id: str) -> bool:
        async with self.registry.lock(session_id):
            session = self._require_session(session_id)
            if session.get_stream_owner(stream_id) is None:
                raise ConnectionNotFoundError(session_id, stream_id, kind="Stream")

            await self.client.force_unpublish(session_id, stream_id)
            session.drop_streams({stream_id})

        logger.info(f"Unpublished stream {stream_id} from session {session_id}")
        return True

    async def force_disconnect(self, session_id: str, connection_id: str) -> bool:
        """
        Evict a participant from a session.

        The cached connection is removed only once the server confirmed the
        disconnection; on failure the cache is left as it was.
        """
        async with self.registry.lock(session_id):
            session = self._require_session(session_id)
            connection = session.get_connection(connection_id)
            if connection is None:
                raise ConnectionNotFoundError(session_id, connection_id)

            await self.client.force_disconnect(session_id, connection_id)
            session.connections = [
                item for item in session.connections if item.connection_id != connection_id
            ]
            session.drop_streams(connection.stream_ids())

        logger.info(f"Disconnected {connection_id} from session {session_id}")
        return True

    async def send_signal(self, props: SignalProperties) -> bool:
        session = self.registry.get(props.session)
        if session is not None:
            for connection_id in props.to:
                if session.get_connection(connection_id) is None:
                    raise ConnectionNotFoundError(props.session, connection_id)

        await self.client.send_signal(props)
        target = "all participants" if props.is_broadcast else f"{len(props.to)} connection(s)"
        logger.debug(f"Signal {props.type or '<untyped>'} sent to {target} of {props.session}")
        return True
