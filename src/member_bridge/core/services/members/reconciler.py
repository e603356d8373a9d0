"""Just-in-time provisioning of members from verified assertions."""

from dataclasses import dataclass

from loguru import logger

from src.member_bridge.core.exceptions import DuplicateMemberError, MemberStoreError
from src.member_bridge.core.models import ExternalIdentityAssertion
from src.member_bridge.core.services.identity.resolver import IdentityResolver
from src.member_bridge.core.storage.member_store import MemberStore
from src.member_bridge.entities.core.member import Member, MemberCreate, MemberUpdate


def provenance_note(provider: str) -> str:
    return f"OAuth user - {provider}"


def provider_label(provider: str) -> str:
    return f"oauth-{provider}"


@dataclass(frozen=True)
class ReconcileResult:
    member: Member
    needs_email: bool


class MemberReconciler:
    """Creates or refreshes the local member for a verified assertion."""

    def __init__(self, resolver: IdentityResolver, member_store: MemberStore):
        self._resolver = resolver
        self._store = member_store

    async def reconcile(self, assertion: ExternalIdentityAssertion) -> ReconcileResult:
        """Provision the member for ``assertion`` (JIT) or refresh an existing one.

        Existing members get a new name and provenance note; their labels and
        subscription are left alone. New members get the provider label and
        are subscribed only when the assertion carried a real email.

        Returns:
            The member and whether a real email still has to be collected
        """
        email = self._resolver.canonical_email(assertion)
        has_real_email = self._resolver.real_email(assertion) is not None
        needs_email = self._resolver.needs_email(assertion)

        existing = await self._resolver.find_existing_member(email)
        if existing is not None:
            member = await self._refresh(existing, assertion)
            return ReconcileResult(member=member, needs_email=needs_email)

        try:
            member = await self._store.create(
                MemberCreate(
                    email=email,
                    name=assertion.display_name,
                    note=provenance_note(assertion.provider),
                    labels=[provider_label(assertion.provider)],
                    subscribed=has_real_email,
                )
            )
            logger.info(
                "Created member {} via {} (placeholder={})",
                member.id,
                assertion.provider,
                not has_real_email,
            )
        except DuplicateMemberError:
            # Lost a race with a concurrent first sign-in; the store's unique
            # email constraint kept a single record, so update that one instead.
            logger.info("Member creation raced for provider {}; updating instead", assertion.provider)
            existing = await self._resolver.find_existing_member(email)
            if existing is None:
                raise MemberStoreError("Member store reported a duplicate it cannot find")
            member = await self._refresh(existing, assertion)

        return ReconcileResult(member=member, needs_email=needs_email)

    async def _refresh(self, member: Member, assertion: ExternalIdentityAssertion) -> Member:
        updated = await self._store.update(
            member.id,
            MemberUpdate(
                name=assertion.display_name or member.name,
                note=provenance_note(assertion.provider),
            ),
        )
        logger.info("Refreshed member {} via {}", updated.id, assertion.provider)
        return updated
