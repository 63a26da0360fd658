import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.v1.errors import app_error_handler
from app.app_config import get_app_environ_config
from app.domain.openvidu.cache_sync import RegistryWebhookSync
from app.domain.openvidu.openvidu_domain import OpenViduService
from app.domain.openvidu.webhook_dispatcher import WebhookEventDispatcher
from app.services.integrations.openvidu_client import OpenViduClient
from app.shared.api.utils import api_failure, init_logger, load_routes, validation_exception_handler
from app.utils.app_errors import AppError, AppErrorCode, OpenViduException


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    cfg = get_app_environ_config()

    service = OpenViduService(OpenViduClient.from_config(cfg))
    dispatcher = WebhookEventDispatcher()
    RegistryWebhookSync(service.registry).register(dispatcher)

    server.state.openvidu_service = service
    server.state.webhook_dispatcher = dispatcher
    logger.info(f"OpenVidu client ready for {cfg.OPENVIDU_URL}")

    if cfg.OPENVIDU_FETCH_ON_STARTUP:
        try:
            await service.fetch_all()
            logger.info(f"Loaded {len(service.get_active_sessions())} session(s) from OpenVidu")
        except OpenViduException as exc:
            logger.warning(f"Initial session sync failed, starting with an empty cache: {exc}")

    load_routes(server, "/api/v1")

    if cfg.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=cfg.LOGFIRE_TOKEN,
            service_name="openvidu-control",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument httpx")
        logfire.instrument_httpx()

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    pending = dispatcher.pending
    if pending:
        logger.info(f"Delivering {pending} pending webhook event(s)")
    await dispatcher.join()


app = FastAPI(
    version="1.0",
    title="OpenVidu Control API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=get_app_environ_config().API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore


def build_granian_kwargs():
    cfg = get_app_environ_config()
    kwargs = {
        "interface": "asgi",
        "address": cfg.API_HOST,
        "port": cfg.API_PORT,
        "workers": cfg.API_WORKERS,
        "reload": cfg.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
