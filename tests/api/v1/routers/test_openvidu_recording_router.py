"""Unit tests for the OpenVidu recording router."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.v1.dependency import get_openvidu_service
from app.api.v1.errors import app_error_handler
from app.api.v1.routers.openvidu_recording import router
from app.domain.openvidu.openvidu_domain import OpenViduService
from app.domain.openvidu.openvidu_models import Recording, RecordingProperties
from app.schemas import OutputMode, RecordingStatus
from app.utils.app_errors import AppError, RecordingNotFoundError


@pytest.fixture
def mock_openvidu_service() -> AsyncMock:
    return AsyncMock(spec=OpenViduService)


@pytest.fixture
def client(mock_openvidu_service: AsyncMock) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_openvidu_service] = lambda: mock_openvidu_service
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return TestClient(app)


def make_recording(status: RecordingStatus = RecordingStatus.STARTED, **kwargs) -> Recording:
    return Recording(
        id="rec1",
        session_id="room",
        name="rec1",
        status=status,
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        **kwargs,
    )


class TestStartRecording:
    def test_start_recording(self, client: TestClient, mock_openvidu_service: AsyncMock):
        # Arrange
        mock_openvidu_service.start_recording.return_value = make_recording(
            RecordingStatus.STARTING, output_mode=OutputMode.INDIVIDUAL
        )

        # Act
        response = client.post(
            "/openvidu/recording/start",
            json={"session": "room", "outputMode": "INDIVIDUAL", "hasAudio": False},
        )

        # Assert
        assert response.status_code == 200
        recording = response.json()["results"]["recording"]
        assert recording["id"] == "rec1"
        assert recording["sessionId"] == "room"
        assert recording["status"] == "starting"
        assert recording["outputMode"] == "INDIVIDUAL"

        props = mock_openvidu_service.start_recording.call_args.args[0]
        assert props == RecordingProperties(
            session="room", output_mode=OutputMode.INDIVIDUAL, has_audio=False
        )

    def test_start_recording_accepts_session_id_key(
        self, client: TestClient, mock_openvidu_service: AsyncMock
    ):
        mock_openvidu_service.start_recording.return_value = make_recording()

        response = client.post("/openvidu/recording/start", json={"sessionId": "room"})

        assert response.status_code == 200
        assert mock_openvidu_service.start_recording.call_args.args[0].session == "room"

    def test_start_recording_without_media(
        self, client: TestClient, mock_openvidu_service: AsyncMock
    ):
        response = client.post(
            "/openvidu/recording/start",
            json={"session": "room", "hasAudio": False, "hasVideo": False},
        )

        assert response.status_code == 400
        assert response.json()["errcode"] == "E_INVALID_ARGUMENT"
        mock_openvidu_service.start_recording.assert_not_called()

    def test_start_recording_missing_session(
        self, client: TestClient, mock_openvidu_service: AsyncMock
    ):
        response = client.post("/openvidu/recording/start", json={"name": "orphan"})

        assert response.status_code == 400
        assert response.json()["errcode"] == "E_INVALID_ARGUMENT"


class TestRecordingQueries:
    def test_stop_recording(self, client: TestClient, mock_openvidu_service: AsyncMock):
        mock_openvidu_service.stop_recording.return_value = make_recording(RecordingStatus.STOPPED)

        response = client.post("/openvidu/recording/rec1/stop")

        assert response.status_code == 200
        assert response.json()["results"]["recording"]["status"] == "stopped"
        mock_openvidu_service.stop_recording.assert_awaited_once_with("rec1")

    def test_get_recording_not_found(self, client: TestClient, mock_openvidu_service: AsyncMock):
        mock_openvidu_service.get_recording.side_effect = RecordingNotFoundError("nope")

        response = client.get("/openvidu/recording/nope")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_RECORDING_NOT_FOUND"

    def test_list_recordings(self, client: TestClient, mock_openvidu_service: AsyncMock):
        mock_openvidu_service.list_recordings.return_value = [
            make_recording(RecordingStatus.READY, url="https://openvidu.test/rec1.mp4")
        ]

        response = client.get("/openvidu/recordings")

        assert response.status_code == 200
        recordings = response.json()["results"]["recordings"]
        assert len(recordings) == 1
        assert recordings[0]["url"] == "https://openvidu.test/rec1.mp4"

    def test_delete_recording(self, client: TestClient, mock_openvidu_service: AsyncMock):
        mock_openvidu_service.delete_recording.return_value = True

        response = client.delete("/openvidu/recording/rec1")

        assert response.status_code == 200
        assert response.json()["results"] == {"recording": True}
