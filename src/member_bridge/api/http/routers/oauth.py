"""OAuth bridge endpoints for member sign-in.

Every failure on these routes ends in a redirect to the sign-in page with a
coarse error code. Token contents and tracebacks stay in the server logs.
"""

from typing import Any
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from loguru import logger

from src.member_bridge.api.http.deps import (
    get_app_config,
    get_bridge_service,
    get_current_session,
)
from src.member_bridge.core.exceptions import BridgeError
from src.member_bridge.core.models import SessionClaims, SessionCredential
from src.member_bridge.core.services import OAuthBridgeService
from src.member_bridge.runtime.config.config_data import ConfigData

router_oauth = APIRouter(tags=["member-oauth"])

INIT_FAILED = "oauth_init_failed"
CALLBACK_FAILED = "oauth_failed"
PROFILE_FAILED = "profile_failed"

_TRUTHY = {"on", "true", "1", "yes"}


def parse_flag(value: str | None) -> bool:
    """Interpret an HTML checkbox style form value."""
    return value is not None and value.strip().lower() in _TRUTHY


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


def _error_redirect(config: ConfigData, error_code: str) -> RedirectResponse:
    return _redirect(f"{config.app.signin_path}?{urlencode({'error': error_code})}")


def _log_failure(route: str, exc: Exception) -> None:
    if isinstance(exc, BridgeError):
        logger.warning("{} failed: {} ({})", route, exc.message, exc.error_code)
    else:
        logger.exception("{} failed unexpectedly", route)


def _cookie_settings(config: ConfigData) -> dict[str, Any]:
    return {
        "httponly": True,
        "secure": config.app.environment == "production",
        "samesite": "lax",
        "path": "/",
    }


def _set_session_cookie(
    response: RedirectResponse, config: ConfigData, credential: SessionCredential
) -> None:
    response.set_cookie(
        key=config.app.session_cookie_name,
        value=credential.token,
        max_age=credential.max_age,
        **_cookie_settings(config),
    )


@router_oauth.api_route("/{provider}/init", methods=["GET", "POST"])
async def init_oauth(
    request: Request,
    provider: str,
    handle: str | None = None,
    config: ConfigData = Depends(get_app_config),
    bridge: OAuthBridgeService = Depends(get_bridge_service),
) -> RedirectResponse:
    """Redirect the browser to the bridge to start the provider handshake.

    The handle may come from the query string or, on POST, from a form field.
    """
    try:
        if handle is None and request.method == "POST":
            form = await request.form()
            form_handle = form.get("handle")
            handle = form_handle if isinstance(form_handle, str) else None

        auth_url = bridge.begin(provider, handle)
    except Exception as exc:
        _log_failure("OAuth init", exc)
        return _error_redirect(config, INIT_FAILED)

    logger.info("Starting {} OAuth handshake via bridge", provider)
    return _redirect(auth_url)


@router_oauth.get("/callback")
async def oauth_callback(
    token: str | None = None,
    provider: str | None = None,
    config: ConfigData = Depends(get_app_config),
    bridge: OAuthBridgeService = Depends(get_bridge_service),
) -> RedirectResponse:
    """Receive the bridge's signed assertion and sign the member in."""
    try:
        outcome = await bridge.handle_callback(token, provider)
    except Exception as exc:
        _log_failure("OAuth callback", exc)
        return _error_redirect(config, CALLBACK_FAILED)

    if outcome.needs_email:
        logger.info("Member {} needs an email; continuing to welcome page", outcome.member.id)
        return _redirect(
            f"{config.app.welcome_path}?token={quote(outcome.completion_token, safe='')}"
        )

    response = _redirect(config.app.home_path)
    _set_session_cookie(response, config, outcome.session)
    logger.info("Member {} signed in", outcome.member.id)
    return response


@router_oauth.post("/complete-profile")
async def complete_profile(
    token: str | None = Form(None),
    email: str | None = Form(None),
    subscribe: str | None = Form(None),
    config: ConfigData = Depends(get_app_config),
    bridge: OAuthBridgeService = Depends(get_bridge_service),
) -> RedirectResponse:
    """Attach a real email to a DID-only member (or decline) and sign them in."""
    try:
        member, credential = await bridge.complete_profile(
            token, email, parse_flag(subscribe)
        )
    except Exception as exc:
        _log_failure("Profile completion", exc)
        return _error_redirect(config, PROFILE_FAILED)

    response = _redirect(config.app.home_path)
    _set_session_cookie(response, config, credential)
    logger.info("Member {} completed profile", member.id)
    return response


@router_oauth.get("/session", response_model=SessionClaims)
async def current_session(
    session: SessionClaims = Depends(get_current_session),
) -> SessionClaims:
    """Claims of the signed-in member's session cookie."""
    return session
