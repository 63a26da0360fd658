from typing import Annotated

from fastapi import Depends, Request

from app.app_config import get_app_environ_config
from app.domain.openvidu.openvidu_domain import OpenViduService
from app.domain.openvidu.webhook_dispatcher import WebhookEventDispatcher
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def get_openvidu_service(request: Request) -> OpenViduService:
    """The service created in the application lifespan."""
    service = getattr(request.app.state, "openvidu_service", None)
    if service is None:
        raise AppError(
            errcode=AppErrorCode.E_INTERNAL_ERROR,
            errmesg="OpenVidu service is not initialized",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        )
    return service


def get_webhook_dispatcher(request: Request) -> WebhookEventDispatcher:
    dispatcher = getattr(request.app.state, "webhook_dispatcher", None)
    if dispatcher is None:
        raise AppError(
            errcode=AppErrorCode.E_INTERNAL_ERROR,
            errmesg="Webhook dispatcher is not initialized",
            status_code=HttpStatusCode.SERVICE_UNAVAILABLE,
        )
    return dispatcher


def get_strict_options() -> bool:
    return get_app_environ_config().OPENVIDU_STRICT_OPTIONS


OpenViduServiceDep = Annotated[OpenViduService, Depends(get_openvidu_service)]
WebhookDispatcherDep = Annotated[WebhookEventDispatcher, Depends(get_webhook_dispatcher)]
StrictOptions = Annotated[bool, Depends(get_strict_options)]
