from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class WorkHours:
    total: float
    regular: float
    overtime: float


class WorkHoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked hours)."""

    @abstractmethod
    def derive(
        self,
        *,
        clock_in: datetime,
        clock_out: datetime,
        break_minutes: int,
        standard_hours: float,
    ) -> WorkHours:
        raise NotImplementedError
