"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException, RequestValidationError
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.member_bridge.api.http.app_data import ApplicationDependencies
from src.member_bridge.api.http.routers.health import router as router_health
from src.member_bridge.api.http.routers.oauth import router_oauth
from src.member_bridge.api.utils.app_startup import configure_logging
from src.member_bridge.core.services import OAuthBridgeService
from src.member_bridge.core.storage import MemberStore, build_member_store
from src.member_bridge.runtime.config.config_data import ConfigData
from src.member_bridge.runtime.context import get_config

__all__ = ["create_app", "app"]


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, environment: str = "development"):
        super().__init__(app)
        self._environment = environment

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        # HSTS only in prod
        if self._environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


# --- Request logging middleware ---
async def log_requests(request: Request, call_next):
    # Correlation / tracing
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    # Query strings carry bridge tokens; never log them
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()

    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except HTTPException as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=exc.status_code,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        except RequestValidationError as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=422,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.validation_error")
            return JSONResponse(
                status_code=422,
                content={"detail": exc.errors(), "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


def create_app(
    config: ConfigData | None = None, member_store: MemberStore | None = None
) -> FastAPI:
    """Build the member OAuth application.

    Args:
        config: Configuration to run with (defaults to the active context's)
        member_store: Pre-built store; when omitted one is built at startup
            from ``member_store.backend`` and closed at shutdown
    """
    config = config or get_config()
    configure_logging(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = member_store is None
        store = member_store if member_store is not None else build_member_store(config)
        bridge = OAuthBridgeService.from_config(config.bridge, config.jwt, store)
        app.state.app_dependencies = ApplicationDependencies(
            config=config, member_store=store, bridge_service=bridge
        )
        logger.info(
            "Starting up member bridge in {} environment (store={}, bridge={})",
            config.app.environment,
            config.member_store.backend,
            config.bridge.base_url,
        )
        try:
            yield
        finally:
            logger.info("Shutting down member bridge")
            if owns_store:
                await store.close()

    is_production = config.app.environment == "production"
    app = FastAPI(
        title="Member OAuth bridge",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )

    app.add_middleware(SecurityHeadersMiddleware, environment=config.app.environment)
    app.middleware("http")(log_requests)

    app.include_router(router_health)
    app.include_router(router_oauth, prefix=config.app.mount_path)
    return app


app = create_app()
