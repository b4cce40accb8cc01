"""Healthcheck endpoint under the versioned API."""
from fastapi import APIRouter

from vidtube.schemas.common import ApiResponse, ok

router = APIRouter(prefix="/healthcheck", tags=["healthcheck"])


@router.get("", response_model=ApiResponse[dict])
async def healthcheck():
    return ok({"status": "ok"}, "Health check passed")
