"""Map external identities onto local members."""

from urllib.parse import quote, urlencode

from loguru import logger

from src.member_bridge.core.exceptions import (
    MissingHandle,
    MissingSubjectIdentifier,
    UnsupportedProvider,
)
from src.member_bridge.core.models import ExternalIdentityAssertion
from src.member_bridge.core.storage.member_store import MemberStore
from src.member_bridge.entities.core.member import Member
from src.member_bridge.runtime.config.config_data import BridgeConfig, ProviderConfig

PLACEHOLDER_EMAIL_DOMAIN = "atproto.local"


def synthesize_placeholder_email(did: str) -> str:
    """Derive the stand-in email for a DID-only identity.

    Pure and deterministic in ``did``. The ``.local`` suffix is reserved for
    link-local names, so no real provider can ever issue this address.
    """
    return f"{did.replace(':', '_')}@{PLACEHOLDER_EMAIL_DOMAIN}"


def is_placeholder_email(email: str) -> bool:
    """True for addresses in the reserved placeholder domain."""
    return email.lower().endswith(f"@{PLACEHOLDER_EMAIL_DOMAIN}")


class IdentityResolver:
    """Resolves bridge URLs, canonical emails and existing members."""

    def __init__(self, bridge_config: BridgeConfig, member_store: MemberStore):
        self._bridge = bridge_config
        self._store = member_store

    def provider_config(self, provider: str | None) -> ProviderConfig:
        if not provider or provider not in self._bridge.providers:
            raise UnsupportedProvider(str(provider))
        return self._bridge.providers[provider]

    def resolve_auth_url(self, provider: str, handle: str | None = None) -> str:
        """Return the bridge endpoint that starts the handshake for ``provider``.

        Raises:
            UnsupportedProvider: unknown provider
            MissingHandle: provider needs a handle and none was given
        """
        cfg = self.provider_config(provider)
        handle = handle.strip() if handle else None

        params: dict[str, str] = {}
        if cfg.requires_handle:
            if not handle:
                raise MissingHandle(provider)
            params["handle"] = handle
        params.update(cfg.extra_params)

        url = f"{self._bridge.base_url.rstrip('/')}{cfg.init_path}"
        if params:
            url = f"{url}?{urlencode(params, quote_via=quote)}"
        return url

    def real_email(self, assertion: ExternalIdentityAssertion) -> str | None:
        """The asserted email, unless it sits in the reserved placeholder domain."""
        if assertion.email and not is_placeholder_email(assertion.email):
            return assertion.email
        return None

    def canonical_email(self, assertion: ExternalIdentityAssertion) -> str:
        """The member store key for ``assertion``: real email, else the DID placeholder."""
        email = self.real_email(assertion)
        if email:
            return email
        if assertion.did:
            return synthesize_placeholder_email(assertion.did)
        raise MissingSubjectIdentifier(
            f"Assertion from {assertion.provider} has neither email nor did"
        )

    def needs_email(self, assertion: ExternalIdentityAssertion) -> bool:
        """True when a DID-only identity still has to supply a real email."""
        if self.real_email(assertion):
            return False
        cfg = self._bridge.providers.get(assertion.provider)
        return bool(cfg and cfg.decentralized)

    async def find_existing_member(self, canonical_email: str) -> Member | None:
        """Exact-match lookup by canonical email. No fuzzy matching."""
        member = await self._store.find_by_email(canonical_email)
        logger.debug("Member lookup by canonical email: found={}", member is not None)
        return member
