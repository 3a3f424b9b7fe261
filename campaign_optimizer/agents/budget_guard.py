"""
Wall-clock execution budget.

Script hosts kill a run outright once their execution limit is reached.
BudgetGuard trips earlier, at a ceiling kept below that limit, so the
pipeline can stop between pages or batches and still report what it did.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass(frozen=True)
class ExecutionBudget:
    """Start time and ceiling of one run, in clock seconds."""
    started_at: float
    ceiling_seconds: float
    host_limit_seconds: Optional[float] = None

    def __post_init__(self):
        if self.ceiling_seconds <= 0:
            raise ValueError(f"ceiling_seconds must be positive, got {self.ceiling_seconds}")
        if self.host_limit_seconds is not None and self.ceiling_seconds >= self.host_limit_seconds:
            raise ValueError(
                f"Ceiling ({self.ceiling_seconds}s) must stay below the host "
                f"execution limit ({self.host_limit_seconds}s)"
            )

    @property
    def deadline(self) -> float:
        return self.started_at + self.ceiling_seconds

    def remaining_at(self, now: float) -> float:
        return max(0.0, self.ceiling_seconds - (now - self.started_at))

    def expired_at(self, now: float) -> bool:
        return self.remaining_at(now) <= 0


class BudgetGuard:
    """
    Track elapsed time against an ExecutionBudget.

    The guard only reads the clock; it never stops anything itself.
    Callers check expired() before each page fetch and each actuation batch.
    """

    DEFAULT_SAFETY_MARGIN = 0.1

    def __init__(
        self,
        ceiling_seconds: float,
        host_limit_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Start a guard.

        Args:
            ceiling_seconds: Time allowed for the run
            host_limit_seconds: Hard limit of the host; the ceiling must be below it
            clock: Monotonic clock returning seconds

        Raises:
            ValueError: If the ceiling is not positive or not below the host limit
        """
        self._clock = clock
        self.budget = ExecutionBudget(
            started_at=clock(),
            ceiling_seconds=ceiling_seconds,
            host_limit_seconds=host_limit_seconds,
        )

    @classmethod
    def from_host_limit(
        cls,
        host_limit_seconds: float,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        clock: Callable[[], float] = time.monotonic
    ) -> "BudgetGuard":
        """
        Derive the ceiling from the host limit.

        Args:
            host_limit_seconds: Hard execution limit of the host
            safety_margin: Fraction of the host limit held back, in (0, 1)
        """
        if not (0 < safety_margin < 1):
            raise ValueError(f"safety_margin must be between 0 and 1, got {safety_margin}")
        return cls(
            ceiling_seconds=host_limit_seconds * (1 - safety_margin),
            host_limit_seconds=host_limit_seconds,
            clock=clock,
        )

    def elapsed(self) -> float:
        return self._clock() - self.budget.started_at

    def remaining(self) -> float:
        return self.budget.remaining_at(self._clock())

    def expired(self) -> bool:
        return self.budget.expired_at(self._clock())

    def to_dict(self) -> Dict[str, float]:
        return {
            "ceiling_seconds": self.budget.ceiling_seconds,
            "host_limit_seconds": self.budget.host_limit_seconds,
            "elapsed_seconds": self.elapsed(),
            "remaining_seconds": self.remaining(),
        }
