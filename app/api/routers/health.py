# app/api/routers/health.py

from fastapi import APIRouter, Request

from app.config.settings import get_settings

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Liveness check with correlation ID from request state. Bypasses authorization."""
    settings = get_settings()
    return {
        "status": "ok",
        "correlation_id": getattr(request.state, "correlation_id", None),
        "environment": settings.environment,
        "version": settings.version,
    }
