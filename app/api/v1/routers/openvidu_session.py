from typing import Annotated, Any

from fastapi import APIRouter, Body

from app.api.v1.dependency import OpenViduServiceDep, StrictOptions
from app.api.v1.schemas.base import ApiOut
from app.api.v1.schemas.openvidu import (
    ClosedOut,
    ConnectionListOut,
    ConnectionOut,
    ConnectionResultOut,
    DisconnectedOut,
    FetchAllOut,
    FetchSessionOut,
    GenerateTokenIn,
    RecordingStatusOut,
    SessionListOut,
    SessionOut,
    SessionResultOut,
    TokenOut,
    UnpublishedOut,
)
from app.domain.openvidu.builders import (
    PublishStreamBuilder,
    SessionPropertiesBuilder,
    TokenOptionsBuilder,
)

router = APIRouter(prefix="/openvidu", tags=["OpenVidu"])

RawOptions = Annotated[dict[str, Any] | None, Body()]


@router.post("/session")
async def create_session(
    service: OpenViduServiceDep,
    strict: StrictOptions,
    options: RawOptions = None,
) -> ApiOut[SessionResultOut]:
    """Create a session, or return the known one with the same customSessionId."""
    props = SessionPropertiesBuilder.build(options, strict=strict)
    session = await service.create_session(props)
    return ApiOut[SessionResultOut](results=SessionResultOut(session=SessionOut.from_domain(session)))


@router.post("/token")
async def generate_token(
    body: GenerateTokenIn,
    service: OpenViduServiceDep,
    strict: StrictOptions,
) -> ApiOut[TokenOut]:
    """Join flow: create the session, or reuse the one with the same customSessionId,
    then issue a token for it.
    """
    props = SessionPropertiesBuilder.build(body.session, strict=strict)
    options = TokenOptionsBuilder.build(body.token_options, strict=strict)
    session = await service.create_session(props)
    token = await service.generate_token(session.session_id, options)
    return ApiOut[TokenOut](results=TokenOut(token=token))


@router.get("/sessions")
async def list_sessions(service: OpenViduServiceDep) -> ApiOut[SessionListOut]:
    sessions = service.get_active_sessions()
    return ApiOut[SessionListOut](
        results=SessionListOut(sessions=[SessionOut.from_domain(item) for item in sessions])
    )


@router.post("/sessions/fetch")
async def fetch_all_sessions(service: OpenViduServiceDep) -> ApiOut[FetchAllOut]:
    """Reconcile the whole cache with the server session list."""
    has_changes = await service.fetch_all()
    return ApiOut[FetchAllOut](results=FetchAllOut(has_changes=has_changes))


@router.get("/session/{session_id}")
async def get_session(session_id: str, service: OpenViduServiceDep) -> ApiOut[SessionResultOut]:
    session = service.get_session(session_id)
    return ApiOut[SessionResultOut](results=SessionResultOut(session=SessionOut.from_domain(session)))


@router.get("/session/{session_id}/connections")
async def list_connections(
    session_id: str, service: OpenViduServiceDep
) -> ApiOut[ConnectionListOut]:
    connections = service.get_active_connections(session_id)
    return ApiOut[ConnectionListOut](
        results=ConnectionListOut(
            connections=[ConnectionOut.from_domain(item) for item in connections]
        )
    )


@router.delete("/session/{session_id}")
async def close_session(session_id: str, service: OpenViduServiceDep) -> ApiOut[ClosedOut]:
    closed = await service.close(session_id)
    return ApiOut[ClosedOut](results=ClosedOut(closed=closed))


@router.post("/session/{session_id}/fetch")
async def fetch_session(session_id: str, service: OpenViduServiceDep) -> ApiOut[FetchSessionOut]:
    """Pull the latest server state of a session into the cache."""
    session, has_changes = await service.fetch(session_id)
    return ApiOut[FetchSessionOut](
        results=FetchSessionOut(session=SessionOut.from_domain(session), has_changes=has_changes)
    )


@router.get("/session/{session_id}/recording")
async def recording_status(
    session_id: str, service: OpenViduServiceDep
) -> ApiOut[RecordingStatusOut]:
    is_recording = service.is_being_recorded(session_id)
    return ApiOut[RecordingStatusOut](results=RecordingStatusOut(is_being_recording=is_recording))


@router.post("/session/{session_id}/publish")
async def publish_stream(
    session_id: str,
    service: OpenViduServiceDep,
    strict: StrictOptions,
    options: RawOptions = None,
) -> ApiOut[ConnectionResultOut]:
    """Publish an IP camera or other external stream into the session."""
    stream_options = PublishStreamBuilder.build(options, strict=strict)
    connection = await service.publish(session_id, stream_options)
    return ApiOut[ConnectionResultOut](
        results=ConnectionResultOut(connection=ConnectionOut.from_domain(connection))
    )


@router.delete("/session/{session_id}/stream/{stream_id}")
async def force_unpublish(
    session_id: str, stream_id: str, service: OpenViduServiceDep
) -> ApiOut[UnpublishedOut]:
    await service.force_unpublish(session_id, stream_id)
    return ApiOut[UnpublishedOut](results=UnpublishedOut())


@router.delete("/session/{session_id}/connection/{connection_id}")
async def force_disconnect(
    session_id: str, connection_id: str, service: OpenViduServiceDep
) -> ApiOut[DisconnectedOut]:
    await service.force_disconnect(session_id, connection_id)
    return ApiOut[DisconnectedOut](results=DisconnectedOut())
