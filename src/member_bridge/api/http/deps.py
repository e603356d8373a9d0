"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from src.member_bridge.api.http.app_data import ApplicationDependencies
from src.member_bridge.core.exceptions import InvalidToken
from src.member_bridge.core.models import SessionClaims
from src.member_bridge.core.services import OAuthBridgeService
from src.member_bridge.core.storage import MemberStore
from src.member_bridge.runtime.config.config_data import ConfigData


def get_app_config(request: Request) -> ConfigData:
    """Get the configuration the application was created with."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.config


def get_member_store(request: Request) -> MemberStore:
    """Get the member store instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.member_store


def get_bridge_service(request: Request) -> OAuthBridgeService:
    """Get the OAuth bridge workflow service."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.bridge_service


async def get_optional_session(
    request: Request,
    config: ConfigData = Depends(get_app_config),
    bridge: OAuthBridgeService = Depends(get_bridge_service),
) -> SessionClaims | None:
    """Claims of the caller's session cookie, or None when absent or invalid."""
    token = request.cookies.get(config.app.session_cookie_name)
    if not token:
        return None
    try:
        return bridge.sessions.verify(token)
    except InvalidToken:
        return None


async def get_current_session(
    session: SessionClaims | None = Depends(get_optional_session),
) -> SessionClaims:
    """Require a valid member session cookie."""
    if session is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return session
