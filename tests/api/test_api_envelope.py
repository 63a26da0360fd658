"""Tests for the shared API envelope: health route, AppError and validation handlers."""

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.api.v1.dependency import OpenViduServiceDep
from app.api.v1.errors import app_error_handler
from app.shared.api.health import router as health_router
from app.shared.api.utils import (
    ApiFailure,
    api_failure,
    check_error,
    load_routes,
    validation_exception_handler,
)
from app.utils.app_errors import AppError, AppErrorCode, OpenViduException


class Ping(BaseModel):
    count: int


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.include_router(health_router)

    @app.get("/boom")
    async def boom():
        raise OpenViduException("OpenVidu responded 500", upstream_status=500)

    @app.post("/ping")
    async def ping(body: Ping):
        return {"count": body.count}

    @app.get("/uninitialized")
    async def uninitialized(service: OpenViduServiceDep):
        return {"sessions": len(service.get_active_sessions())}

    return TestClient(app)


class TestEnvelope:
    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["results"] == "OK"
        assert "version" in data

    def test_app_error_envelope(self, client: TestClient):
        response = client.get("/boom")

        assert response.status_code == 502
        data = response.json()
        assert data == {
            "version": data["version"],
            "success": False,
            "errcode": "E_OPENVIDU_ERROR",
            "erresid": data["erresid"],
            "errmesg": "OpenVidu responded 500",
        }

    def test_validation_error_envelope(self, client: TestClient):
        response = client.post("/ping", json={"count": "many"})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_INVALID_PARAMS"

    def test_service_not_initialized(self, client: TestClient):
        response = client.get("/uninitialized")

        assert response.status_code == 503
        assert response.json()["errcode"] == "E_INTERNAL"


class TestApiFailure:
    def test_enum_errcode_is_normalized(self):
        failure = api_failure(AppErrorCode.E_WEBHOOK_ERROR, "bad")

        assert failure.errcode == "E_WEBHOOK_ERROR"
        assert failure.errmesg == "bad"

    def test_check_error(self):
        assert check_error(ApiFailure()) == (True, True)
        assert check_error({"errcode": "E_SESSION_NOT_FOUND"}) == (True, False)
        assert check_error({"results": "OK"}) == (False, False)


class TestLoadRoutes:
    def test_mounts_every_router_under_prefix(self):
        app = FastAPI()

        load_routes(app, "/api/v1")

        paths = {route.path for route in app.routes}
        assert "/api/v1/health" in paths
        assert "/api/v1/openvidu/session" in paths
        assert "/api/v1/openvidu/sessions/fetch" in paths
        assert "/api/v1/openvidu/recording/{recording_id}/stop" in paths
        assert "/api/v1/openvidu/signal" in paths
        assert "/api/v1/webhooks/openvidu" in paths
