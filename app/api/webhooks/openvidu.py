"""OpenVidu webhook endpoint.

OpenVidu POSTs one JSON object per event to the URL configured with
``OPENVIDU_WEBHOOK_ENDPOINT`` on the server. Events are queued on the
``WebhookEventDispatcher`` and the request is acknowledged immediately;
subscriber outcomes never change the response.

Event Types:
- sessionCreated / sessionDestroyed
- participantJoined / participantLeft
- webrtcConnectionCreated / webrtcConnectionDestroyed
- recordingStatusChanged
- signalSent
- filterEventDispatched

References:
- https://docs.openvidu.io/en/stable/reference-docs/openvidu-server-webhook/
- Pydantic schemas: app.schemas.openvidu_events
"""

from __future__ import annotations

import orjson
from fastapi import APIRouter, Request
from loguru import logger
from pydantic import ValidationError

from app.api.v1.dependency import WebhookDispatcherDep
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.openvidu import WebhookAcceptedOut
from app.shared.api.utils import ApiFailure, api_failure
from app.utils.app_errors import AppErrorCode

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/openvidu", response_model=ApiOut[WebhookAcceptedOut] | ApiFailure)
async def openvidu_webhook(
    request: Request,
    dispatcher: WebhookDispatcherDep,
) -> ApiOut[WebhookAcceptedOut] | ApiFailure:
    """Receive an OpenVidu webhook event and hand it to the dispatcher.

    Malformed payloads are answered with an ``ApiFailure`` body so the server
    side log shows why the event was refused.
    """
    try:
        body = await request.body()

        try:
            event_data = orjson.loads(body)
        except orjson.JSONDecodeError as exc:
            logger.error(f"Invalid JSON in webhook body: {exc}")
            return api_failure(
                errcode=AppErrorCode.E_WEBHOOK_INVALID_JSON,
                errmesg=f"Invalid JSON: {exc!s}",
            )

        if not isinstance(event_data, dict) or not event_data.get("event"):
            logger.error("Missing 'event' field in webhook payload")
            return api_failure(
                errcode=AppErrorCode.E_WEBHOOK_MISSING_EVENT_TYPE,
                errmesg="Missing 'event' field",
            )

        try:
            event = dispatcher.dispatch(event_data)
        except ValidationError as exc:
            logger.error(f"Failed to parse {event_data['event']} event: {exc}")
            return api_failure(
                errcode=AppErrorCode.E_WEBHOOK_VALIDATION_ERROR,
                errmesg=f"Failed to parse event: {exc!s}",
            )

        logger.info(f"OpenVidu webhook: {event.event} (session {event.session_id})")
        return ApiOut[WebhookAcceptedOut](
            results=WebhookAcceptedOut(event=event.event, session_id=event.session_id)
        )

    except Exception as exc:
        logger.exception("Error processing OpenVidu webhook")
        return api_failure(
            errcode=AppErrorCode.E_WEBHOOK_ERROR,
            errmesg=str(exc),
        )
