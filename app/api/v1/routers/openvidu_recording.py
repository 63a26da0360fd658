from typing import Annotated, Any

from fastapi import APIRouter, Body

from app.api.v1.dependency import OpenViduServiceDep, StrictOptions
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.openvidu import (
    RecordingDeletedOut,
    RecordingListOut,
    RecordingOut,
    RecordingResultOut,
)
from app.domain.openvidu.builders import RecordingPropertiesBuilder

router = APIRouter(prefix="/openvidu", tags=["OpenVidu"])


@router.post("/recording/start")
async def start_recording(
    service: OpenViduServiceDep,
    strict: StrictOptions,
    options: Annotated[dict[str, Any] | None, Body()] = None,
) -> ApiOut[RecordingResultOut]:
    props = RecordingPropertiesBuilder.build(options, strict=strict)
    recording = await service.start_recording(props)
    return ApiOut[RecordingResultOut](
        results=RecordingResultOut(recording=RecordingOut.from_domain(recording))
    )


@router.post("/recording/{recording_id}/stop")
async def stop_recording(
    recording_id: str, service: OpenViduServiceDep
) -> ApiOut[RecordingResultOut]:
    recording = await service.stop_recording(recording_id)
    return ApiOut[RecordingResultOut](
        results=RecordingResultOut(recording=RecordingOut.from_domain(recording))
    )


@router.get("/recording/{recording_id}")
async def get_recording(recording_id: str, service: OpenViduServiceDep) -> ApiOut[RecordingResultOut]:
    recording = await service.get_recording(recording_id)
    return ApiOut[RecordingResultOut](
        results=RecordingResultOut(recording=RecordingOut.from_domain(recording))
    )


@router.get("/recordings")
async def list_recordings(service: OpenViduServiceDep) -> ApiOut[RecordingListOut]:
    recordings = await service.list_recordings()
    return ApiOut[RecordingListOut](
        results=RecordingListOut(recordings=[RecordingOut.from_domain(item) for item in recordings])
    )


@router.delete("/recording/{recording_id}")
async def delete_recording(
    recording_id: str, service: OpenViduServiceDep
) -> ApiOut[RecordingDeletedOut]:
    deleted = await service.delete_recording(recording_id)
    return ApiOut[RecordingDeletedOut](results=RecordingDeletedOut(recording=deleted))
