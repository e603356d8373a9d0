import pytest

from src.member_bridge.core.exceptions import InvalidToken
from src.member_bridge.core.models import ExternalIdentityAssertion
from src.member_bridge.core.services import SESSION_TTL_SECONDS, SessionIssuer, TokenCodec
from src.member_bridge.entities import Member
from tests.utils import FROZEN_NOW, FakeClock


@pytest.fixture
def member() -> Member:
    return Member(email="did_plc_abc123@atproto.local", name="bob.bsky.social")


@pytest.fixture
def assertion() -> ExternalIdentityAssertion:
    return ExternalIdentityAssertion(
        provider="atproto", did="did:plc:abc123", handle="bob.bsky.social"
    )


class TestSessionIssuer:
    def test_issue_embeds_member_and_identity(
        self, session_issuer: SessionIssuer, member: Member, assertion
    ):
        credential = session_issuer.issue(member, assertion)

        assert credential.max_age == SESSION_TTL_SECONDS == 30 * 24 * 3600
        assert credential.expires_at == FROZEN_NOW + SESSION_TTL_SECONDS
        assert credential.claims.to_payload() == {
            "memberId": member.id,
            "email": "did_plc_abc123@atproto.local",
            "name": "bob.bsky.social",
            "did": "did:plc:abc123",
            "handle": "bob.bsky.social",
            "provider": "atproto",
            "typ": "member_session",
        }

    def test_verify_round_trips_claims(
        self, session_issuer: SessionIssuer, member: Member, assertion
    ):
        credential = session_issuer.issue(member, assertion)

        assert session_issuer.verify(credential.token) == credential.claims

    def test_token_payload_uses_wire_names(
        self, session_issuer: SessionIssuer, codec: TokenCodec, member: Member, assertion
    ):
        payload = codec.verify(session_issuer.issue(member, assertion).token)

        assert payload["memberId"] == member.id
        assert "member_id" not in payload

    def test_expired_session(
        self, session_issuer: SessionIssuer, member: Member, assertion, clock: FakeClock
    ):
        credential = session_issuer.issue(member, assertion)
        clock.advance(SESSION_TTL_SECONDS + 1)

        with pytest.raises(InvalidToken):
            session_issuer.verify(credential.token)

    def test_assertion_is_not_a_session(self, session_issuer: SessionIssuer, google_token: str):
        with pytest.raises(InvalidToken):
            session_issuer.verify(google_token)

    def test_untyped_token_is_not_a_session(
        self, session_issuer: SessionIssuer, codec: TokenCodec, member: Member
    ):
        token = codec.sign(
            {"memberId": member.id, "email": member.email, "provider": "atproto"}, 300
        )

        with pytest.raises(InvalidToken):
            session_issuer.verify(token)

    def test_session_cannot_be_read_as_an_assertion(
        self, session_issuer: SessionIssuer, codec: TokenCodec, member: Member, assertion
    ):
        credential = session_issuer.issue(member, assertion)

        with pytest.raises(InvalidToken):
            ExternalIdentityAssertion.from_claims(codec.verify(credential.token))
