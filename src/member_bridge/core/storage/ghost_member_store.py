"""Member store backed by a Ghost site's members Admin API."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx
from authlib.jose import JsonWebToken
from loguru import logger

from src.member_bridge.core.exceptions import (
    DuplicateMemberError,
    MemberNotFound,
    MemberStoreError,
)
from src.member_bridge.core.storage.member_store import MemberStore
from src.member_bridge.entities.core.member import Member, MemberCreate, MemberUpdate

ADMIN_TOKEN_TTL = 300
_admin_jwt = JsonWebToken(["HS256"])


def generate_admin_token(admin_api_key: str, now: int | None = None) -> str:
    """Mint the short-lived JWT the Ghost Admin API expects.

    Args:
        admin_api_key: Admin API key in ``<id>:<hex secret>`` form
        now: Issue time, epoch seconds (defaults to the current time)

    Returns:
        Signed HS256 JWT with the key id in its header
    """
    try:
        key_id, hex_secret = admin_api_key.split(":", 1)
        secret = bytes.fromhex(hex_secret)
    except ValueError as e:
        raise ValueError("Admin API key must look like '<id>:<hex secret>'") from e

    iat = int(time.time()) if now is None else now
    header = {"alg": "HS256", "typ": "JWT", "kid": key_id}
    payload = {"iat": iat, "exp": iat + ADMIN_TOKEN_TTL, "aud": "/admin/"}
    token = _admin_jwt.encode(header, payload, secret)
    return token.decode() if isinstance(token, bytes) else token


def _member_from_api(data: dict[str, Any]) -> Member:
    labels = [
        label["name"] if isinstance(label, dict) else str(label)
        for label in data.get("labels") or []
    ]
    fields: dict[str, Any] = {
        "id": data["id"],
        "email": data["email"],
        "name": data.get("name"),
        "note": data.get("note"),
        "labels": labels,
        "subscribed": bool(data.get("subscribed", False)),
    }
    for stamp in ("created_at", "updated_at"):
        if data.get(stamp):
            fields[stamp] = data[stamp]
    return Member(**fields)


def _member_to_api(changes: dict[str, Any]) -> dict[str, Any]:
    body = dict(changes)
    if "labels" in body and body["labels"] is not None:
        body["labels"] = [{"name": name} for name in body["labels"]]
    return body


def _is_duplicate(response: httpx.Response) -> bool:
    if response.status_code == 409:
        return True
    if response.status_code != 422:
        return False
    try:
        errors = response.json().get("errors") or []
    except ValueError:
        return False
    text = " ".join(
        f"{err.get('message', '')} {err.get('context') or ''}" for err in errors
    ).lower()
    return "already exist" in text


class GhostAdminMemberStore(MemberStore):
    """Talks to ``{admin_url}/ghost/api/admin/members/``.

    Each call is bounded by the configured timeout and is never retried: a
    stale retry of a create could double-submit.
    """

    def __init__(
        self,
        admin_url: str,
        admin_api_key: str,
        *,
        timeout: float = 5.0,
        accept_version: str = "v5.0",
        client: httpx.AsyncClient | None = None,
        token_factory: Callable[[str], str] = generate_admin_token,
    ):
        self._base = f"{admin_url.rstrip('/')}/ghost/api/admin/members/"
        self._api_key = admin_api_key
        self._token_factory = token_factory
        self._accept_version = accept_version
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Ghost {self._token_factory(self._api_key)}",
            "Accept-Version": self._accept_version,
        }

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.bind(error_type=type(e).__name__).error(
                "Member store request failed: {} {}", method, url
            )
            raise MemberStoreError(f"Member store unreachable: {e}") from e

    def _raise_for_status(self, response: httpx.Response, email: str | None = None) -> None:
        if response.is_success:
            return
        if _is_duplicate(response):
            raise DuplicateMemberError(email)
        if response.status_code == 404:
            raise MemberNotFound("Member not found in member store")
        logger.error(
            "Member store returned HTTP {} for {} {}",
            response.status_code,
            response.request.method,
            response.request.url.path,
        )
        raise MemberStoreError(f"Member store returned HTTP {response.status_code}")

    @staticmethod
    def _members(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            return response.json().get("members") or []
        except ValueError as e:
            raise MemberStoreError("Member store returned a malformed body") from e

    def _first_member(self, response: httpx.Response) -> Member:
        members = self._members(response)
        if not members:
            raise MemberStoreError("Member store response carried no member")
        return _member_from_api(members[0])

    async def find_by_email(self, email: str) -> Member | None:
        quoted = email.replace("'", "\\'")
        response = await self._request(
            "GET", self._base, params={"filter": f"email:'{quoted}'", "limit": "1"}
        )
        self._raise_for_status(response)
        members = self._members(response)
        return _member_from_api(members[0]) if members else None

    async def create(self, attrs: MemberCreate) -> Member:
        body = {"members": [_member_to_api(attrs.model_dump())]}
        response = await self._request("POST", self._base, json=body)
        self._raise_for_status(response, attrs.email)
        return self._first_member(response)

    async def update(self, member_id: str, attrs: MemberUpdate) -> Member:
        changes = attrs.changes()
        body = {"members": [_member_to_api(changes)]}
        response = await self._request("PUT", f"{self._base}{member_id}/", json=body)
        self._raise_for_status(response, changes.get("email"))
        return self._first_member(response)

    async def health_check(self) -> bool:
        try:
            response = await self._request("GET", self._base, params={"limit": "1"})
        except MemberStoreError:
            return False
        return response.is_success

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
