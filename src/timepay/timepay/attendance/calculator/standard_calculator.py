from __future__ import annotations

from datetime import datetime

from .base import WorkHours, WorkHoursCalculator


class StandardWorkHoursCalculator(WorkHoursCalculator):
    """Standard rule: (out - in) - break, not below 0; hours past the standard day are overtime."""

    def derive(
        self,
        *,
        clock_in: datetime,
        clock_out: datetime,
        break_minutes: int,
        standard_hours: float,
    ) -> WorkHours:
        total = (clock_out - clock_in).total_seconds() / 3600 - (break_minutes or 0) / 60
        total = max(round(total, 2), 0.0)

        if total <= standard_hours:
            return WorkHours(total=total, regular=total, overtime=0.0)
        return WorkHours(total=total, regular=float(standard_hours), overtime=round(total - standard_hours, 2))
