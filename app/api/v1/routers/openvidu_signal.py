from typing import Annotated, Any

from fastapi import APIRouter, Body

from app.api.v1.dependency import OpenViduServiceDep, StrictOptions
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.openvidu import SignalSentOut
from app.domain.openvidu.builders import SignalPropertiesBuilder

router = APIRouter(prefix="/openvidu", tags=["OpenVidu"])


@router.post("/signal")
async def send_signal(
    service: OpenViduServiceDep,
    strict: StrictOptions,
    options: Annotated[dict[str, Any] | None, Body()] = None,
) -> ApiOut[SignalSentOut]:
    """Send a signal to some connections of a session, or to all of them when ``to`` is empty."""
    props = SignalPropertiesBuilder.build(options, strict=strict)
    sent = await service.send_signal(props)
    return ApiOut[SignalSentOut](results=SignalSentOut(sent=sent))
