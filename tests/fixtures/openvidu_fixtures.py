"""In-memory OpenVidu server for tests.

``FakeOpenViduServer`` implements the subset of the OpenVidu REST API the
client uses and is plugged into ``OpenViduClient`` through
``httpx.MockTransport``, so the whole HTTP path (auth, JSON, status codes) is
exercised without a network.
"""

import asyncio
import base64
import itertools
import re
from typing import Any

import httpx
import orjson
import pytest

from app.domain.openvidu.openvidu_domain import OpenViduService
from app.services.integrations.openvidu_client import API_PREFIX, OpenViduClient

FAKE_OPENVIDU_URL = "http://openvidu.test"
FAKE_OPENVIDU_SECRET = "test-secret"
CREATED_AT_MS = 1700000000000


def _json(status_code: int, body: Any) -> httpx.Response:
    return httpx.Response(status_code, content=orjson.dumps(body))


def _not_found(what: str) -> httpx.Response:
    return _json(404, {"status": 404, "message": f"{what} not found"})


class FakeOpenViduServer:
    def __init__(self) -> None:
        self.sessions: dict[str, dict[str, Any]] = {}
        self.recordings: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []
        # (method, path without API prefix) -> forced status code
        self.failures: dict[tuple[str, str], int] = {}
        self._ids = itertools.count(1)
        self._recording_ids = itertools.count(1)
        # Seconds every request waits before being answered, lets concurrent calls interleave
        self.latency = 0.0

    # ==================== TEST HELPERS ====================

    def fail(self, method: str, path: str, status_code: int = 500) -> None:
        self.failures[(method, path)] = status_code

    def count(self, method: str, path: str) -> int:
        return self.calls.count((method, API_PREFIX + path))

    def connections(self, session_id: str) -> list[dict[str, Any]]:
        return self.sessions[session_id]["connections"]["content"]

    def add_session(self, session_id: str, **fields: Any) -> dict[str, Any]:
        session = {
            "id": session_id,
            "sessionId": session_id,
            "createdAt": CREATED_AT_MS,
            "mediaMode": "ROUTED",
            "recordingMode": "MANUAL",
            "defaultRecordingProperties": {"outputMode": "COMPOSED", "recordingLayout": "BEST_FIT"},
            "customSessionId": "",
            "connections": {"numberOfElements": 0, "content": []},
            "recording": False,
        }
        session.update(fields)
        self.sessions[session_id] = session
        return session

    def add_connection(
        self,
        session_id: str,
        connection_id: str | None = None,
        *,
        stream_ids: tuple[str, ...] = (),
        subscribers: tuple[str, ...] = (),
    ) -> dict[str, Any]:
        n = next(self._ids)
        connection_id = connection_id or f"con_{n}"
        connection = {
            "id": connection_id,
            "connectionId": connection_id,
            "sessionId": session_id,
            "status": "active",
            "type": "WEBRTC",
            "role": "PUBLISHER",
            "token": f"wss://openvidu.test?sessionId={session_id}&token=tok_{n}",
            "createdAt": CREATED_AT_MS,
            "activeAt": CREATED_AT_MS + 1000,
            "publishers": [
                {
                    "streamId": stream_id,
                    "createdAt": CREATED_AT_MS,
                    "mediaOptions": {"hasAudio": True, "hasVideo": True, "typeOfVideo": "CAMERA"},
                }
                for stream_id in stream_ids
            ],
            "subscribers": [
                {"streamId": stream_id, "createdAt": CREATED_AT_MS} for stream_id in subscribers
            ],
        }
        self.connections(session_id).append(connection)
        self._sync_count(session_id)
        return connection

    def _sync_count(self, session_id: str) -> None:
        content = self.connections(session_id)
        self.sessions[session_id]["connections"]["numberOfElements"] = len(content)

    # ==================== TRANSPORT ====================

    async def async_handler(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(self.latency)
        return self.handler(request)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        self.requests.append(request)

        expected = base64.b64encode(f"OPENVIDUAPP:{FAKE_OPENVIDU_SECRET}".encode()).decode()
        if request.headers.get("authorization") != f"Basic {expected}":
            return _json(401, {"status": 401, "message": "Unauthorized"})

        path = request.url.path.removeprefix(API_PREFIX)
        forced = self.failures.get((request.method, path))
        if forced is not None:
            return _json(forced, {"status": forced, "message": "forced failure"})

        body = orjson.loads(request.content) if request.content else {}
        for method, pattern, route in self._routes():
            if method != request.method:
                continue
            match = re.fullmatch(pattern, path)
            if match:
                return route(body, *match.groups())
        return _json(404, {"status": 404, "message": f"no route for {request.method} {path}"})

    def _routes(self):
        return (
            ("POST", r"/sessions", self._create_session),
            ("GET", r"/sessions", self._list_sessions),
            ("GET", r"/sessions/([^/]+)", self._get_session),
            ("DELETE", r"/sessions/([^/]+)", self._close_session),
            ("POST", r"/sessions/([^/]+)/connection", self._create_connection),
            ("DELETE", r"/sessions/([^/]+)/connection/([^/]+)", self._delete_connection),
            ("DELETE", r"/sessions/([^/]+)/stream/([^/]+)", self._delete_stream),
            ("POST", r"/signal", self._signal),
            ("POST", r"/recordings/start", self._start_recording),
            ("POST", r"/recordings/stop/([^/]+)", self._stop_recording),
            ("GET", r"/recordings", self._list_recordings),
            ("GET", r"/recordings/([^/]+)", self._get_recording),
            ("DELETE", r"/recordings/([^/]+)", self._delete_recording),
        )

    def _create_session(self, body: dict[str, Any]) -> httpx.Response:
        custom_id = body.get("customSessionId")
        if custom_id and custom_id in self.sessions:
            return httpx.Response(409)
        session_id = custom_id or f"ses_{next(self._ids)}"
        session = self.add_session(
            session_id,
            mediaMode=body.get("mediaMode", "ROUTED"),
            recordingMode=body.get("recordingMode", "MANUAL"),
            defaultRecordingProperties=body.get(
                "defaultRecordingProperties",
                {"outputMode": "COMPOSED", "recordingLayout": "BEST_FIT"},
            ),
            customSessionId=custom_id or "",
        )
        return _json(200, session)

    def _list_sessions(self, body: dict[str, Any]) -> httpx.Response:
        content = list(self.sessions.values())
        return _json(200, {"numberOfElements": len(content), "content": content})

    def _get_session(self, body: dict[str, Any], session_id: str) -> httpx.Response:
        if session_id not in self.sessions:
            return _not_found("Session")
        return _json(200, self.sessions[session_id])

    def _close_session(self, body: dict[str, Any], session_id: str) -> httpx.Response:
        if self.sessions.pop(session_id, None) is None:
            return _not_found("Session")
        return httpx.Response(204)

    def _create_connection(self, body: dict[str, Any], session_id: str) -> httpx.Response:
        if session_id not in self.sessions:
            return _not_found("Session")

        connection = self.add_connection(session_id)
        connection["role"] = body.get("role")
        connection["serverData"] = body.get("data", "")
        connection["record"] = body.get("record", True)
        if body.get("type") == "IPCAM":
            connection.update(
                type="IPCAM",
                role="PUBLISHER",
                platform="IPCAM",
                rtspUri=body["rtspUri"],
                publishers=[
                    {
                        "streamId": f"str_IPC_{connection['connectionId']}",
                        "createdAt": CREATED_AT_MS,
                        "mediaOptions": {
                            "hasAudio": body.get("hasAudio", True),
                            "hasVideo": body.get("hasVideo", True),
                            "typeOfVideo": body.get("typeOfVideo"),
                        },
                    }
                ],
            )
        else:
            connection.update(status="pending", activeAt=None)
        return _json(200, connection)

    def _delete_connection(
        self, body: dict[str, Any], session_id: str, connection_id: str
    ) -> httpx.Response:
        if session_id not in self.sessions:
            return _not_found("Session")
        content = self.connections(session_id)
        remaining = [item for item in content if item["connectionId"] != connection_id]
        if len(remaining) == len(content):
            return _not_found("Connection")
        self.sessions[session_id]["connections"]["content"] = remaining
        self._sync_count(session_id)
        return httpx.Response(204)

    def _delete_stream(self, body: dict[str, Any], session_id: str, stream_id: str) -> httpx.Response:
        if session_id not in self.sessions:
            return _not_found("Session")
        found = False
        for connection in self.connections(session_id):
            before = len(connection["publishers"])
            connection["publishers"] = [
                item for item in connection["publishers"] if item["streamId"] != stream_id
            ]
            found = found or len(connection["publishers"]) != before
        if not found:
            return _not_found("Stream")
        return httpx.Response(204)

    def _signal(self, body: dict[str, Any]) -> httpx.Response:
        if body.get("session") not in self.sessions:
            return _not_found("Session")
        return httpx.Response(200)

    def _start_recording(self, body: dict[str, Any]) -> httpx.Response:
        session_id = body.get("session")
        if session_id not in self.sessions:
            return _not_found("Session")
        if self.sessions[session_id]["recording"]:
            return _json(409, {"status": 409, "message": "Session is already being recorded"})

        recording_id = f"rec{next(self._recording_ids)}"
        recording = {
            "id": recording_id,
            "object": "recording",
            "name": body.get("name") or recording_id,
            "outputMode": body.get("outputMode", "COMPOSED"),
            "hasAudio": body.get("hasAudio", True),
            "hasVideo": body.get("hasVideo", True),
            "recordingLayout": body.get("recordingLayout", "BEST_FIT"),
            "resolution": body.get("resolution", "1280x720"),
            "sessionId": session_id,
            "createdAt": CREATED_AT_MS,
            "size": 0,
            "duration": 0.0,
            "url": None,
            "status": "starting",
        }
        self.recordings[recording_id] = recording
        self.sessions[session_id]["recording"] = True
        return _json(200, recording)

    def _stop_recording(self, body: dict[str, Any], recording_id: str) -> httpx.Response:
        recording = self.recordings.get(recording_id)
        if recording is None:
            return _not_found("Recording")
        recording.update(status="stopped", size=1024, duration=12.5)
        session = self.sessions.get(recording["sessionId"])
        if session is not None:
            session["recording"] = False
        return _json(200, recording)

    def _list_recordings(self, body: dict[str, Any]) -> httpx.Response:
        items = list(self.recordings.values())
        return _json(200, {"count": len(items), "items": items})

    def _get_recording(self, body: dict[str, Any], recording_id: str) -> httpx.Response:
        if recording_id not in self.recordings:
            return _not_found("Recording")
        return _json(200, self.recordings[recording_id])

    def _delete_recording(self, body: dict[str, Any], recording_id: str) -> httpx.Response:
        recording = self.recordings.get(recording_id)
        if recording is None:
            return _not_found("Recording")
        if recording["status"] in ("starting", "started"):
            return _json(409, {"status": 409, "message": "Recording is in progress"})
        del self.recordings[recording_id]
        return httpx.Response(204)


@pytest.fixture
def fake_openvidu() -> FakeOpenViduServer:
    """A fresh in-memory OpenVidu server per test."""
    return FakeOpenViduServer()


@pytest.fixture
def openvidu_client(fake_openvidu: FakeOpenViduServer) -> OpenViduClient:
    return OpenViduClient(
        FAKE_OPENVIDU_URL,
        FAKE_OPENVIDU_SECRET,
        timeout=2.0,
        transport=httpx.MockTransport(fake_openvidu.async_handler),
    )


@pytest.fixture
def openvidu_service(openvidu_client: OpenViduClient) -> OpenViduService:
    return OpenViduService(openvidu_client)
