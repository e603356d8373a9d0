"""Member session credentials."""

from pydantic import ValidationError

from src.member_bridge.core.exceptions import InvalidToken
from src.member_bridge.core.models import (
    SESSION_TOKEN_TYPE,
    ExternalIdentityAssertion,
    SessionClaims,
    SessionCredential,
)
from src.member_bridge.core.services.jwt.token_codec import TokenCodec
from src.member_bridge.entities.core.member import Member

SESSION_TTL_SECONDS = 30 * 24 * 3600


class SessionIssuer:
    """Mints and checks the bearer credential that proves member identity.

    Sessions always last ``SESSION_TTL_SECONDS``. No revocation or session
    list is kept; a valid, unexpired credential is sufficient on its own.
    """

    def __init__(self, codec: TokenCodec):
        self._codec = codec

    @property
    def ttl_seconds(self) -> int:
        return SESSION_TTL_SECONDS

    def issue(self, member: Member, assertion: ExternalIdentityAssertion) -> SessionCredential:
        claims = SessionClaims(
            member_id=member.id,
            email=member.email,
            name=member.name,
            did=assertion.did,
            handle=assertion.handle,
            provider=assertion.provider,
        )
        token, expires_at = self._codec.sign_with_expiry(
            claims.to_payload(), SESSION_TTL_SECONDS
        )
        return SessionCredential(
            token=token, claims=claims, expires_at=expires_at, max_age=SESSION_TTL_SECONDS
        )

    def verify(self, token: str) -> SessionClaims:
        """Return the claims of a valid session credential.

        Raises:
            InvalidToken: the credential is forged, malformed, expired, or not
                a session credential
        """
        payload = self._codec.verify(token)
        if payload.get("typ") != SESSION_TOKEN_TYPE:
            raise InvalidToken("Token is not a member session")
        try:
            return SessionClaims.model_validate(payload)
        except ValidationError as e:
            raise InvalidToken("Token is not a member session") from e
