"""Public service routes: service info and health check."""

from fastapi import APIRouter

from alpinebridge.infra.time import iso_timestamp

SERVICE_NAME = "AlpineBridge"
SERVICE_VERSION = "1.0.0"

router = APIRouter()


@router.get("/")
def service_info() -> dict:
    """Service identification for uptime monitors."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "healthy",
        "timestamp": iso_timestamp(),
    }


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
