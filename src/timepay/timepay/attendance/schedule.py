from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..branches.model import Branch
from ..common.datetime_utils import minutes_between
from ..core.constants import DEFAULT_CLOSING_TIME, DEFAULT_OPENING_TIME


@dataclass(frozen=True)
class WorkSchedule:
    """Organisational day: lateness is measured from ``start``, early leave up to ``end``."""

    start: time = DEFAULT_OPENING_TIME
    end: time = DEFAULT_CLOSING_TIME

    @classmethod
    def for_branch(cls, branch: Optional[Branch], default: "WorkSchedule") -> "WorkSchedule":
        if branch is None:
            return default
        return cls(start=branch.opening_time, end=branch.closing_time)

    def late_minutes(self, clock_in: datetime) -> int:
        return minutes_between(datetime.combine(clock_in.date(), self.start), clock_in)

    def early_leave_minutes(self, clock_out: datetime) -> int:
        return minutes_between(clock_out, datetime.combine(clock_out.date(), self.end))
