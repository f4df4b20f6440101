from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from livefloor.domain.common.ids import BranchId


@dataclass(frozen=True)
class AccessScope:
    """Which branch a display or action covers; `branch_id=None` means every branch."""

    branch_id: BranchId | None = None

    @classmethod
    def all_branches(cls) -> AccessScope:
        return cls(branch_id=None)

    @classmethod
    def for_branch(cls, branch_id: str | None) -> AccessScope:
        if not branch_id:
            return cls.all_branches()
        return cls(branch_id=BranchId(branch_id))

    @property
    def is_all_branches(self) -> bool:
        return self.branch_id is None

    @property
    def label(self) -> str:
        return "all" if self.branch_id is None else str(self.branch_id)

    def includes(self, branch_id: str | None) -> bool:
        if self.branch_id is None:
            return True
        return branch_id == self.branch_id


def start_of_day(now: datetime) -> datetime:
    """Midnight of `now`'s calendar day, in `now`'s own timezone."""
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
