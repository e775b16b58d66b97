"""Character attributes and the attribute point budget.

Every build subject has six attribute scores that start at 25 and are paid
for out of a single campaign-wide pool. Scores feed the skill rank and
percentage rules and the derived combat statistics.
"""

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from serrian.game.errors import (
    BudgetExceededError,
    InvalidAttributeError,
    RaceCapExceededError,
)

if TYPE_CHECKING:
    from serrian.game.character.subject import BuildSubject
    from serrian.game.systems.budget import BudgetConfig

logger = structlog.get_logger(__name__)


class AttributeName(StrEnum):
    """Core character attributes, keyed by their three letter code."""

    STRENGTH = "STR"
    DEXTERITY = "DEX"
    CONSTITUTION = "CON"
    INTELLIGENCE = "INT"
    WISDOM = "WIS"
    CHARISMA = "CHA"

    @property
    def full_name(self) -> str:
        """Lower-case full attribute name (e.g. "strength")."""
        return self.name.lower()

    @classmethod
    def parse(cls, value: "str | AttributeName") -> "AttributeName":
        """Resolve a code or full name in any case.

        Raises:
            InvalidAttributeError: If the value names no attribute
        """
        if isinstance(value, AttributeName):
            return value
        text = str(value).strip()
        for attr in cls:
            if text.upper() == attr.value or text.lower() == attr.full_name:
                return attr
        raise InvalidAttributeError(f"Unknown attribute: {value!r}", key=value)


# Codes that mark a skill as attribute-independent
NO_ATTRIBUTE_CODES = frozenset({"", "NA", "N/A"})

ATTRIBUTE_NAMES = [attr.value for attr in AttributeName]

DEFAULT_ATTRIBUTE_SCORE = 25
MIN_ATTRIBUTE_SCORE = 0


def get_modifier(score: int) -> int:
    """Calculate the attribute modifier for a score.

    Scores in the 21-29 band are average and give no modifier. Below that the
    penalty grows one step per five points down to -5; from 30 upward the
    bonus grows by one for every five points.

    Args:
        score: The attribute score

    Returns:
        The modifier

    Examples:
        >>> get_modifier(25)
        0
        >>> get_modifier(30)
        1
        >>> get_modifier(12)
        -2
    """
    if score <= 1:
        return -5
    if score <= 5:
        return -4
    if score <= 10:
        return -3
    if score <= 15:
        return -2
    if score <= 20:
        return -1
    if score <= 29:
        return 0
    return (score - 30) // 5 + 1


def attribute_percent(score: int) -> int:
    """Percentage shown on an attribute check (100 - score)."""
    return 100 - score


def attribute_points_spent(subject: "BuildSubject") -> int:
    """Total attribute points currently assigned across all six scores."""
    return sum(subject.attributes.values())


def attribute_points_remaining(subject: "BuildSubject", config: "BudgetConfig") -> int:
    """Attribute points left in the campaign budget (negative if overspent)."""
    return config.attribute_points - attribute_points_spent(subject)


def _check_race_cap(subject: "BuildSubject", attr: AttributeName, value: int) -> None:
    if subject.race is None:
        return
    cap = subject.race.max_for(attr)
    if cap is not None and value > cap:
        raise RaceCapExceededError(
            f"{attr.full_name.title()} {value} exceeds the {subject.race.name} maximum of {cap}",
            key=attr,
            attempted=value,
            limit=cap,
        )


def set_attribute(
    subject: "BuildSubject",
    attr_name: "str | AttributeName",
    new_value: int,
    config: "BudgetConfig",
) -> int:
    """Set an attribute, clamping an unaffordable increase to the budget.

    Increases beyond the remaining budget are reduced to the largest
    affordable value rather than rejected. Decreases are always accepted and
    negative values clamp to the floor.

    Args:
        subject: The build subject to modify
        attr_name: Attribute code or full name
        new_value: Requested score
        config: Campaign budget

    Returns:
        The score actually written

    Raises:
        InvalidAttributeError: If the attribute name is unknown
        RaceCapExceededError: If the clamped value is above the race maximum
    """
    attr = AttributeName.parse(attr_name)
    current = subject.attributes[attr]
    value = max(MIN_ATTRIBUTE_SCORE, new_value)

    remaining = attribute_points_remaining(subject, config)
    if value > current and value - current > remaining:
        value = current + max(0, remaining)

    _check_race_cap(subject, attr, value)

    subject.attributes[attr] = value
    logger.debug(
        "attribute_set",
        subject_id=subject.id,
        attribute=attr.value,
        requested=new_value,
        value=value,
    )
    return value


def set_attribute_strict(
    subject: "BuildSubject",
    attr_name: "str | AttributeName",
    new_value: int,
    config: "BudgetConfig",
) -> int:
    """Set an attribute, rejecting anything the budget cannot pay for.

    Raises:
        InvalidAttributeError: If the attribute is unknown or the value negative
        BudgetExceededError: If the increase does not fit the remaining budget
        RaceCapExceededError: If the value is above the race maximum
    """
    attr = AttributeName.parse(attr_name)
    if new_value < MIN_ATTRIBUTE_SCORE:
        raise InvalidAttributeError(
            f"{attr.full_name.title()} cannot be below {MIN_ATTRIBUTE_SCORE}",
            key=attr,
            attempted=new_value,
            limit=MIN_ATTRIBUTE_SCORE,
        )

    current = subject.attributes[attr]
    remaining = attribute_points_remaining(subject, config)
    if new_value > current and new_value - current > remaining:
        raise BudgetExceededError(
            f"Raising {attr.full_name} to {new_value} needs {new_value - current} points, "
            f"only {max(0, remaining)} remain",
            key=attr,
            attempted=new_value,
            limit=current + max(0, remaining),
        )

    _check_race_cap(subject, attr, new_value)

    subject.attributes[attr] = new_value
    logger.debug("attribute_set", subject_id=subject.id, attribute=attr.value, value=new_value)
    return new_value
