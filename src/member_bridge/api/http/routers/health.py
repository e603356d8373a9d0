"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.member_bridge.api.http.app_data import ApplicationDependencies

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: 200 as long as the process is running."""
    return {"status": "healthy"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe covering the member store backend."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    store = app_deps.member_store
    backend = app_deps.config.member_store.backend

    try:
        healthy = await store.health_check()
    except Exception as e:
        healthy = False
        detail: dict[str, Any] = {"status": "unhealthy", "error": str(e)}
    else:
        detail = {"status": "healthy" if healthy else "unhealthy"}
    detail["backend"] = backend

    body = {"status": "ready" if healthy else "not_ready", "member_store": detail}
    if not healthy:
        return JSONResponse(status_code=503, content=body)
    return body
