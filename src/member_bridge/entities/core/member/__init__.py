"""Member entity module.

- Member / MemberCreate / MemberUpdate: domain models
- MemberTable: database persistence model
"""

from .entity import Member, MemberCreate, MemberUpdate
from .table import MemberTable

__all__ = ["Member", "MemberCreate", "MemberUpdate", "MemberTable"]
