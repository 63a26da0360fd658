from fastapi import APIRouter
from .utils import ApiSuccess


router = APIRouter(tags=['Health'])


@router.get('/health', response_model=ApiSuccess)
async def health() -> ApiSuccess:
    """Liveness check. Does not contact the OpenVidu server."""
    return ApiSuccess(results="OK")
