"""Health Probe for container orchestration."""
from fastapi import APIRouter
from pydantic import BaseModel

from gateway import __version__

router = APIRouter(prefix="/health", tags=["system"])


class HealthStatus(BaseModel):
    status: str
    version: str = __version__


@router.get("", response_model=HealthStatus)
def health_check():
    return HealthStatus(status="ok")


@router.get("/ready", response_model=HealthStatus)
def readiness_check():
    return HealthStatus(status="ok")
