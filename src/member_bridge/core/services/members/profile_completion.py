"""Second step for DID-only identities: attach a real email to the member."""

import re

from loguru import logger

from src.member_bridge.core.exceptions import (
    InvalidEmail,
    InvalidProfileToken,
    MemberNotFound,
)
from src.member_bridge.core.models import ExternalIdentityAssertion, SessionCredential
from src.member_bridge.core.services.identity.resolver import (
    IdentityResolver,
    synthesize_placeholder_email,
)
from src.member_bridge.core.services.jwt.token_codec import TokenCodec
from src.member_bridge.core.services.session.session_issuer import SessionIssuer
from src.member_bridge.core.storage.member_store import MemberStore
from src.member_bridge.entities.core.member import Member, MemberUpdate

_EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str | None) -> str | None:
    """Strip a caller-supplied email; blank means the caller declined.

    Raises:
        InvalidEmail: the value is not shaped like ``local@domain.tld``
    """
    if email is None:
        return None
    email = email.strip()
    if not email:
        return None
    if not _EMAIL_SHAPE.match(email):
        raise InvalidEmail("Supplied email is not a valid address")
    return email


class ProfileCompletionService:
    """Pending (placeholder email, unsubscribed) -> Completed (real email).

    The bridge token is re-verified on every call and is the only capability
    needed to complete the profile; nothing is kept server-side between the
    callback and this step. Running it again after an interruption is safe
    as long as the placeholder member still exists.
    """

    def __init__(
        self,
        codec: TokenCodec,
        resolver: IdentityResolver,
        member_store: MemberStore,
        session_issuer: SessionIssuer,
    ):
        self._codec = codec
        self._resolver = resolver
        self._store = member_store
        self._sessions = session_issuer

    def _assertion(self, token: str) -> ExternalIdentityAssertion:
        return ExternalIdentityAssertion.from_claims(self._codec.verify(token))

    async def complete_profile(self, token: str, real_email: str, subscribe: bool) -> Member:
        """Move the placeholder member for ``token`` onto ``real_email``.

        Raises:
            InvalidToken: the bridge token does not verify
            InvalidProfileToken: the assertion has no DID
            MemberNotFound: no member holds the placeholder email
            DuplicateMemberError: ``real_email`` belongs to another member
        """
        assertion = self._assertion(token)
        return await self._complete(assertion, real_email, subscribe)

    async def _complete(
        self, assertion: ExternalIdentityAssertion, real_email: str, subscribe: bool
    ) -> Member:
        if not assertion.did:
            raise InvalidProfileToken("Invalid token for profile completion")

        placeholder = synthesize_placeholder_email(assertion.did)
        member = await self._resolver.find_existing_member(placeholder)
        if member is None:
            raise MemberNotFound("No pending member for this identity")

        # TODO: reject real_email when another member already owns it, once
        # product decides whether that should merge or fail.
        updated = await self._store.update(
            member.id, MemberUpdate(email=real_email, subscribed=subscribe)
        )
        logger.info(
            "Completed profile for member {} (subscribed={})", updated.id, subscribe
        )
        return updated

    async def finish(
        self, token: str, email: str | None = None, subscribe: bool = False
    ) -> tuple[Member, SessionCredential]:
        """Complete the profile if an email was given, then issue the session.

        A caller who declines to give an email keeps using the placeholder
        identity; the session is bound to it.

        Raises:
            InvalidToken, InvalidProfileToken, InvalidEmail, MemberNotFound,
            DuplicateMemberError
        """
        assertion = self._assertion(token)
        real_email = normalize_email(email)

        if real_email is not None:
            member = await self._complete(assertion, real_email, subscribe)
        else:
            member = await self._resolver.find_existing_member(
                self._resolver.canonical_email(assertion)
            )
            if member is None:
                raise MemberNotFound("No member for this identity")
            logger.info("Member {} declined to add an email", member.id)

        return member, self._sessions.issue(member, assertion)
