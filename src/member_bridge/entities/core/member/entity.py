"""Member domain entity."""

from typing import Any

from pydantic import BaseModel, Field

from src.member_bridge.entities.core._base import Entity


class Member(Entity):
    """A site member as held by the member store.

    ``email`` is the canonical email: either a real address or the placeholder
    synthesized from a DID. It is the store's unique key.
    """

    email: str = Field(description="Canonical email, unique per store")
    name: str | None = Field(default=None, description="Display name")
    note: str | None = Field(default=None, description="Provenance note")
    labels: list[str] = Field(default_factory=list, description="Label names")
    subscribed: bool = Field(default=False, description="Newsletter subscription")

    def __eq__(self, other: Any) -> bool:
        """Compare members by business attributes, ignoring timestamps."""
        if not isinstance(other, Member):
            return False

        return (
            self.id == other.id
            and self.email == other.email
            and self.name == other.name
            and self.note == other.note
            and self.labels == other.labels
            and self.subscribed == other.subscribed
        )

    def __hash__(self) -> int:
        return hash((self.id, self.email))


class MemberCreate(BaseModel):
    """Attributes for a new member."""

    email: str
    name: str | None = None
    note: str | None = None
    labels: list[str] = Field(default_factory=list)
    subscribed: bool = False


class MemberUpdate(BaseModel):
    """Partial update; only explicitly set fields are written."""

    email: str | None = None
    name: str | None = None
    note: str | None = None
    labels: list[str] | None = None
    subscribed: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
