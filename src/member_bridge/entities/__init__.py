"""Entities module with an entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model
- table.py: Database persistence model
"""

from .core.member import Member, MemberCreate, MemberTable, MemberUpdate

__all__ = [
    "Member",
    "MemberCreate",
    "MemberUpdate",
    "MemberTable",
]
