"""Rejection errors raised by the build engine.

Every error is a local, synchronous validation failure. The subject being
built is always left in its last valid state when one of these is raised.
"""

from typing import Any


class BuildError(Exception):
    """Base class for all build engine rejections.

    Attributes:
        key: The attribute name or allocation key the operation targeted
        attempted: The value the caller asked for
        limit: The bound that rejected it (budget, cap, floor, cost...)
    """

    def __init__(
        self,
        message: str,
        *,
        key: Any = None,
        attempted: int | None = None,
        limit: int | None = None,
    ) -> None:
        super().__init__(message)
        self.key = key
        self.attempted = attempted
        self.limit = limit

    def to_dict(self) -> dict[str, Any]:
        """Structured context for callers rendering their own message."""
        return {
            "error": type(self).__name__,
            "message": str(self),
            "key": str(self.key) if self.key is not None else None,
            "attempted": self.attempted,
            "limit": self.limit,
        }


class BudgetExceededError(BuildError):
    """Attribute or pre-lock skill allocation would exceed its point budget."""


class RaceCapExceededError(BuildError):
    """Attribute value exceeds the race-defined ceiling."""


class LockViolationError(BuildError):
    """Locked-mode rule broken (checkpoint floor, multi-point XP purchase)."""


class SkillCapExceededError(LockViolationError, BudgetExceededError):
    """A single skill would exceed the per-skill cap while unlocked."""


class InsufficientXPError(BuildError):
    """XP purchase cost exceeds remaining XP."""


class InvalidLockTransitionError(BuildError):
    """Lock or checkpoint requested from the wrong progression state."""


class UnknownSkillError(BuildError):
    """Allocation references a skill id absent from the catalog."""


class PrerequisiteNotMetError(BuildError):
    """Allocation targets a tier 2/3 skill whose lineage is not unlocked."""


class InvalidLineageError(BuildError):
    """Lineage path does not match the skill's tier or declared parents."""


class InvalidAttributeError(BuildError, ValueError):
    """Unknown attribute name or a value below the attribute floor."""


class SubjectNotFoundError(BuildError):
    """No build subject stored under the requested id."""
