from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from authlib.jose import JsonWebToken

from src.member_bridge.core.exceptions import (
    DuplicateMemberError,
    MemberNotFound,
    MemberStoreError,
)
from src.member_bridge.core.storage.ghost_member_store import (
    GhostAdminMemberStore,
    generate_admin_token,
)
from src.member_bridge.entities import MemberCreate, MemberUpdate

_KEY_ID = "650aa1b2c3d4e5f6a7b8c9d0"
_KEY_SECRET = "a" * 64
_ADMIN_KEY = f"{_KEY_ID}:{_KEY_SECRET}"
_BASE = "https://ghost.test/ghost/api/admin/members/"

Handler = Callable[[httpx.Request], httpx.Response]


def _member_json(**overrides) -> dict:
    data = {
        "id": "m-1",
        "email": "alice@example.com",
        "name": "Alice",
        "note": "OAuth user - google",
        "labels": [{"id": "l-1", "name": "oauth-google", "slug": "oauth-google"}],
        "subscribed": True,
        "created_at": "2024-01-01T00:00:00.000Z",
        "updated_at": "2024-01-02T00:00:00.000Z",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_store() -> Callable[[Handler], GhostAdminMemberStore]:
    def _make(handler: Handler) -> GhostAdminMemberStore:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GhostAdminMemberStore(
            "https://ghost.test/",
            _ADMIN_KEY,
            client=client,
            token_factory=lambda key: "admin-jwt",
        )

    return _make


def test_admin_token_shape():
    token = generate_admin_token(_ADMIN_KEY, now=1_700_000_000)

    claims = JsonWebToken(["HS256"]).decode(token, bytes.fromhex(_KEY_SECRET))
    assert claims.header["kid"] == _KEY_ID
    assert claims["aud"] == "/admin/"
    assert claims["iat"] == 1_700_000_000
    assert claims["exp"] == 1_700_000_300


@pytest.mark.parametrize("key", ["no-colon", "id:not-hex"])
def test_admin_token_rejects_malformed_key(key):
    with pytest.raises(ValueError):
        generate_admin_token(key)


class TestGhostAdminMemberStore:
    async def test_find_by_email(self, make_store):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"members": [_member_json()]})

        member = await make_store(handler).find_by_email("alice@example.com")

        assert member.id == "m-1"
        assert member.labels == ["oauth-google"]
        request = seen[0]
        assert request.method == "GET"
        assert str(request.url).startswith(_BASE)
        assert request.url.params["filter"] == "email:'alice@example.com'"
        assert request.headers["authorization"] == "Ghost admin-jwt"
        assert request.headers["accept-version"] == "v5.0"

    async def test_find_missing(self, make_store):
        store = make_store(lambda request: httpx.Response(200, json={"members": []}))

        assert await store.find_by_email("nobody@example.com") is None

    async def test_create_sends_label_objects(self, make_store):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"members": [_member_json()]})

        member = await make_store(handler).create(
            MemberCreate(
                email="alice@example.com",
                name="Alice",
                note="OAuth user - google",
                labels=["oauth-google"],
                subscribed=True,
            )
        )

        assert member.email == "alice@example.com"
        sent = bodies[0]["members"][0]
        assert sent["labels"] == [{"name": "oauth-google"}]
        assert sent["subscribed"] is True

    async def test_update_puts_only_changes(self, make_store):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"members": [_member_json(email="bob@example.com")]}
            )

        member = await make_store(handler).update(
            "m-1", MemberUpdate(email="bob@example.com", subscribed=False)
        )

        assert member.email == "bob@example.com"
        assert seen[0].method == "PUT"
        assert str(seen[0].url) == f"{_BASE}m-1/"
        assert json.loads(seen[0].content) == {
            "members": [{"email": "bob@example.com", "subscribed": False}]
        }

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(409, json={"errors": [{"message": "Conflict"}]}),
            httpx.Response(
                422,
                json={
                    "errors": [
                        {
                            "message": "Validation error, cannot save member.",
                            "context": "Member already exists. Attempting to add member with existing email address",
                        }
                    ]
                },
            ),
        ],
    )
    async def test_duplicate_responses(self, make_store, response: httpx.Response):
        store = make_store(lambda request: response)

        with pytest.raises(DuplicateMemberError):
            await store.create(MemberCreate(email="alice@example.com"))

    async def test_other_validation_error_is_store_error(self, make_store):
        store = make_store(
            lambda request: httpx.Response(
                422, json={"errors": [{"message": "Invalid email"}]}
            )
        )

        with pytest.raises(MemberStoreError) as exc_info:
            await store.create(MemberCreate(email="alice@example.com"))
        assert not isinstance(exc_info.value, DuplicateMemberError)

    async def test_unknown_member_on_update(self, make_store):
        store = make_store(lambda request: httpx.Response(404, json={"errors": []}))

        with pytest.raises(MemberNotFound):
            await store.update("missing", MemberUpdate(name="x"))

    async def test_server_error(self, make_store):
        store = make_store(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(MemberStoreError):
            await store.find_by_email("alice@example.com")

    async def test_transport_error_is_not_retried(self, make_store):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(MemberStoreError):
            await make_store(handler).find_by_email("alice@example.com")
        assert calls == 1

    async def test_malformed_body(self, make_store):
        store = make_store(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(MemberStoreError):
            await store.find_by_email("alice@example.com")

    async def test_health_check(self, make_store):
        healthy = make_store(lambda request: httpx.Response(200, json={"members": []}))
        down = make_store(lambda request: httpx.Response(500))

        assert await healthy.health_check() is True
        assert await down.health_check() is False
