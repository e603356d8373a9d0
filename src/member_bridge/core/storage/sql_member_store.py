"""SQL-backed member store."""

from __future__ import annotations

from datetime import UTC, datetime

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from src.member_bridge.core.exceptions import (
    DuplicateMemberError,
    MemberNotFound,
    MemberStoreError,
)
from src.member_bridge.core.services.database.db_session import DbSessionService
from src.member_bridge.core.storage.member_store import MemberStore
from src.member_bridge.entities.core.member import (
    Member,
    MemberCreate,
    MemberTable,
    MemberUpdate,
)


def _to_member(row: MemberTable) -> Member:
    return Member.model_validate(row, from_attributes=True)


class SqlMemberStore(MemberStore):
    """Member store over a SQL database.

    Canonical-email uniqueness is enforced by the unique index on
    ``members.email``; a violation surfaces as ``DuplicateMemberError``.
    """

    def __init__(self, db: DbSessionService):
        self._db = db

    async def find_by_email(self, email: str) -> Member | None:
        try:
            with self._db.get_session() as session:
                row = session.exec(
                    select(MemberTable).where(MemberTable.email == email)
                ).first()
                return _to_member(row) if row is not None else None
        except SQLAlchemyError as e:
            raise MemberStoreError(f"Member lookup failed: {e}") from e

    async def create(self, attrs: MemberCreate) -> Member:
        row = MemberTable(**attrs.model_dump())
        with self._db.get_session() as session:
            try:
                session.add(row)
                session.commit()
                session.refresh(row)
            except IntegrityError as e:
                session.rollback()
                raise DuplicateMemberError(attrs.email) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise MemberStoreError(f"Member create failed: {e}") from e
            logger.debug("Created member {}", row.id)
            return _to_member(row)

    async def update(self, member_id: str, attrs: MemberUpdate) -> Member:
        changes = attrs.changes()
        with self._db.get_session() as session:
            try:
                row = session.get(MemberTable, member_id)
                if row is None:
                    raise MemberNotFound(f"No member with id {member_id}")
                for field, value in changes.items():
                    if field == "labels":
                        # Reassign so the JSON column is marked dirty
                        value = list(value or [])
                    setattr(row, field, value)
                row.updated_at = datetime.now(UTC)
                session.add(row)
                session.commit()
                session.refresh(row)
            except IntegrityError as e:
                session.rollback()
                raise DuplicateMemberError(changes.get("email")) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise MemberStoreError(f"Member update failed: {e}") from e
            logger.debug("Updated member {} fields={}", member_id, sorted(changes))
            return _to_member(row)

    async def health_check(self) -> bool:
        return self._db.health_check()

    async def close(self) -> None:
        self._db.dispose()
