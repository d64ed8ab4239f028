"""
Monitoring endpoints.
"""
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from passbook.engine import __version__, get_bank_registry

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str = __version__
    banks: list[str] = []


@router.get("/health", response_model=HealthResponse, tags=["Monitoring"])
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the server is running, with the supported bank codes.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow().isoformat(),
        banks=[code.value for code in get_bank_registry().codes],
    )
