"""Member store interface and in-memory implementation.

The bridge core only ever needs three operations from the member store. Every
backend must enforce uniqueness of the canonical email itself: the
reconciler's lookup-then-create is not atomic.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from src.member_bridge.core.exceptions import DuplicateMemberError, MemberNotFound
from src.member_bridge.entities.core.member import Member, MemberCreate, MemberUpdate


class MemberStore(ABC):
    """Abstract interface for member store backends."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Member | None:
        """Exact-match lookup by canonical email.

        Args:
            email: Canonical email (real or placeholder)

        Returns:
            The member, or None if no member has this email
        """

    @abstractmethod
    async def create(self, attrs: MemberCreate) -> Member:
        """Create a member.

        Raises:
            DuplicateMemberError: a member with this email already exists
            MemberStoreError: the store failed
        """

    @abstractmethod
    async def update(self, member_id: str, attrs: MemberUpdate) -> Member:
        """Apply a partial update to a member.

        Raises:
            MemberNotFound: unknown member id
            DuplicateMemberError: the new email belongs to another member
            MemberStoreError: the store failed
        """

    async def health_check(self) -> bool:
        """Whether the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryMemberStore(MemberStore):
    """Dict-backed member store for tests and local development."""

    def __init__(self, members: list[Member] | None = None):
        self._members: dict[str, Member] = {m.id: m for m in members or []}
        self._lock = asyncio.Lock()

    def _id_for_email(self, email: str) -> str | None:
        for member_id, member in self._members.items():
            if member.email == email:
                return member_id
        return None

    async def find_by_email(self, email: str) -> Member | None:
        member_id = self._id_for_email(email)
        if member_id is None:
            return None
        return self._members[member_id].model_copy(deep=True)

    async def create(self, attrs: MemberCreate) -> Member:
        async with self._lock:
            if self._id_for_email(attrs.email) is not None:
                raise DuplicateMemberError(attrs.email)
            member = Member(**attrs.model_dump())
            self._members[member.id] = member
            return member.model_copy(deep=True)

    async def update(self, member_id: str, attrs: MemberUpdate) -> Member:
        async with self._lock:
            current = self._members.get(member_id)
            if current is None:
                raise MemberNotFound(f"No member with id {member_id}")

            changes = attrs.changes()
            new_email = changes.get("email")
            if new_email is not None and new_email != current.email:
                owner = self._id_for_email(new_email)
                if owner is not None and owner != member_id:
                    raise DuplicateMemberError(new_email)

            updated = current.model_copy(
                update={**changes, "updated_at": datetime.now(UTC)}, deep=True
            )
            self._members[member_id] = updated
            return updated.model_copy(deep=True)

    def all(self) -> list[Member]:
        return [m.model_copy(deep=True) for m in self._members.values()]
