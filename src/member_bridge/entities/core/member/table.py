"""Member database table model."""

from sqlalchemy import JSON, Column
from sqlmodel import Field

from src.member_bridge.entities.core._base import EntityTable


class MemberTable(EntityTable, table=True):
    """Database persistence model for members.

    The unique index on ``email`` is what actually prevents two members for
    the same external identity when first sign-ins race.
    """

    __tablename__ = "members"

    email: str = Field(index=True, unique=True, nullable=False)
    name: str | None = None
    note: str | None = None
    labels: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    subscribed: bool = Field(default=False, nullable=False)
