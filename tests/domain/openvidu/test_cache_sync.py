"""Tests for RegistryWebhookSync: webhook events applied to the session cache."""

import pytest

from app.domain.openvidu.cache_sync import RegistryWebhookSync
from app.domain.openvidu.openvidu_models import RecordingProperties, SessionProperties
from app.domain.openvidu.webhook_dispatcher import WebhookEventDispatcher
from app.utils.app_errors import SessionNotFoundError


@pytest.fixture
def dispatcher(openvidu_service) -> WebhookEventDispatcher:
    dispatcher = WebhookEventDispatcher()
    RegistryWebhookSync(openvidu_service.registry).register(dispatcher)
    return dispatcher


@pytest.fixture
async def room(openvidu_service, fake_openvidu):
    await openvidu_service.create_session(SessionProperties(custom_session_id="room"))
    fake_openvidu.add_connection("room", "con_pub", stream_ids=("str_pub",))
    fake_openvidu.add_connection("room", "con_sub", subscribers=("str_pub",))
    await openvidu_service.fetch("room")
    return "room"


class TestRegistryWebhookSync:
    async def test_session_destroyed_evicts(self, openvidu_service, dispatcher, room):
        dispatcher.dispatch(
            {
                "event": "sessionDestroyed",
                "sessionId": room,
                "timestamp": 1700000009000,
                "startTime": 1700000000000,
                "duration": 9,
                "reason": "lastParticipantLeft",
            }
        )
        await dispatcher.join()

        with pytest.raises(SessionNotFoundError):
            openvidu_service.get_session(room)

    async def test_participant_left_drops_connection(self, openvidu_service, dispatcher, room):
        dispatcher.dispatch(
            {
                "event": "participantLeft",
                "sessionId": room,
                "timestamp": 1700000009000,
                "participantId": "con_pub",
                "reason": "disconnect",
            }
        )
        await dispatcher.join()

        connections = openvidu_service.get_active_connections(room)
        assert [c.connection_id for c in connections] == ["con_sub"]
        assert connections[0].subscribers == []

    async def test_participant_left_unknown_session_is_ignored(self, openvidu_service, dispatcher):
        dispatcher.dispatch(
            {"event": "participantLeft", "sessionId": "elsewhere", "connectionId": "con_x"}
        )
        await dispatcher.join()

        assert openvidu_service.get_active_sessions() == []

    async def test_recording_status_changes_flag(self, openvidu_service, dispatcher, room):
        # Arrange
        await openvidu_service.start_recording(RecordingProperties(session=room))
        assert openvidu_service.is_being_recorded(room) is True

        # Act
        dispatcher.dispatch(
            {
                "event": "recordingStatusChanged",
                "sessionId": room,
                "timestamp": 1700000009000,
                "id": "rec1",
                "outputMode": "COMPOSED",
                "status": "ready",
                "reason": "recordingStoppedByServer",
            }
        )
        await dispatcher.join()

        # Assert
        assert openvidu_service.is_being_recorded(room) is False
        assert openvidu_service.registry.recordings() == []

    async def test_recording_started_by_server(self, openvidu_service, dispatcher, room):
        dispatcher.dispatch(
            {
                "event": "recordingStatusChanged",
                "sessionId": room,
                "id": "rec_auto",
                "status": "started",
            }
        )
        await dispatcher.join()

        assert openvidu_service.is_being_recorded(room) is True
        assert openvidu_service.registry.get_recording("rec_auto").session_id == room

    async def test_recording_without_session_is_ignored(self, openvidu_service, dispatcher, room):
        dispatcher.dispatch({"event": "recordingStatusChanged", "id": "rec_x", "status": "started"})
        await dispatcher.join()

        assert openvidu_service.registry.recordings() == []
        assert openvidu_service.is_being_recorded(room) is False
        assert openvidu_service.registry._locks == {}
