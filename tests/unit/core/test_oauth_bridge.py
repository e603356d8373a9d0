import pytest

from src.member_bridge.core.exceptions import (
    InvalidToken,
    MissingCallbackParameters,
    UnsupportedProvider,
)
from src.member_bridge.core.services import (
    SESSION_TTL_SECONDS,
    OAuthBridgeService,
    TokenCodec,
)
from src.member_bridge.core.storage import InMemoryMemberStore
from src.member_bridge.runtime.config.config_data import BridgeConfig, JWTConfig
from tests.fixtures.services import AssertionFactory


class TestOAuthBridgeService:
    def test_begin_delegates_to_resolver(self, bridge_service: OAuthBridgeService):
        assert bridge_service.begin("google") == "https://bridge.test/api/auth/google"
        with pytest.raises(UnsupportedProvider):
            bridge_service.begin("myspace")

    @pytest.mark.parametrize(
        ("token", "provider"), [(None, "google"), ("", "google"), ("tok", None)]
    )
    async def test_callback_requires_token_and_provider(
        self, bridge_service: OAuthBridgeService, token, provider
    ):
        with pytest.raises(MissingCallbackParameters):
            await bridge_service.handle_callback(token, provider)

    async def test_email_identity_gets_session(
        self, bridge_service: OAuthBridgeService, google_token: str
    ):
        outcome = await bridge_service.handle_callback(google_token, "google")

        assert not outcome.needs_email
        assert outcome.session is not None
        assert outcome.session.claims.email == "alice@example.com"
        assert outcome.session.claims.member_id == outcome.member.id

    async def test_did_only_identity_continues_to_completion(
        self, bridge_service: OAuthBridgeService, atproto_token: str
    ):
        outcome = await bridge_service.handle_callback(atproto_token, "atproto")

        assert outcome.needs_email
        assert outcome.session is None
        assert outcome.completion_token == atproto_token
        assert outcome.member.email == "did_plc_abc123@atproto.local"

    async def test_signed_provider_wins_over_query(
        self,
        bridge_service: OAuthBridgeService,
        member_store: InMemoryMemberStore,
        google_token: str,
    ):
        outcome = await bridge_service.handle_callback(google_token, "atproto")

        assert outcome.session.claims.provider == "google"
        assert (await member_store.find_by_email("alice@example.com")).labels == [
            "oauth-google"
        ]

    async def test_forged_token(self, bridge_service: OAuthBridgeService):
        with pytest.raises(InvalidToken):
            await bridge_service.handle_callback("forged.token.value", "google")

    async def test_token_without_provider_claim(
        self, bridge_service: OAuthBridgeService, make_assertion: AssertionFactory
    ):
        token = make_assertion(email="alice@example.com")

        with pytest.raises(InvalidToken):
            await bridge_service.handle_callback(token, "google")

    async def test_full_did_flow(
        self, bridge_service: OAuthBridgeService, atproto_token: str
    ):
        pending = await bridge_service.handle_callback(atproto_token, "atproto")
        member, credential = await bridge_service.complete_profile(
            pending.completion_token, "bob@example.com", True
        )

        assert member.id == pending.member.id
        assert member.subscribed is True
        assert bridge_service.sessions.verify(credential.token).email == "bob@example.com"

    async def test_complete_profile_requires_token(self, bridge_service: OAuthBridgeService):
        with pytest.raises(MissingCallbackParameters):
            await bridge_service.complete_profile(None, "bob@example.com")

    async def test_session_credential_is_not_accepted_as_callback_token(
        self,
        bridge_service: OAuthBridgeService,
        member_store: InMemoryMemberStore,
        atproto_token: str,
    ):
        pending = await bridge_service.handle_callback(atproto_token, "atproto")
        _, declined = await bridge_service.complete_profile(pending.completion_token)
        await bridge_service.complete_profile(atproto_token, "bob@example.com", False)

        with pytest.raises(InvalidToken):
            await bridge_service.handle_callback(declined.token, "atproto")

        members = member_store.all()
        assert len(members) == 1
        assert members[0].email == "bob@example.com"

    async def test_placeholder_domain_email_is_not_trusted(
        self,
        bridge_service: OAuthBridgeService,
        member_store: InMemoryMemberStore,
        make_assertion: AssertionFactory,
    ):
        token = make_assertion(
            provider="atproto", did="did:plc:zzz", email="did_plc_zzz@atproto.local"
        )

        outcome = await bridge_service.handle_callback(token, "atproto")

        assert outcome.needs_email
        member = member_store.all()[0]
        assert member.email == "did_plc_zzz@atproto.local"
        assert member.subscribed is False


def test_session_lifetime_is_fixed(bridge_config: BridgeConfig, codec: TokenCodec):
    jwt_config = JWTConfig.model_validate({"session_ttl_seconds": 60})

    service = OAuthBridgeService.from_config(
        bridge_config, jwt_config, InMemoryMemberStore(), codec=codec
    )

    assert service.sessions.ttl_seconds == SESSION_TTL_SECONDS == 30 * 24 * 3600
