"""Derived combat statistics for build subjects.

All functions here are pure except :func:`recalculate`, which writes the
results back onto the subject after an accepted mutation.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from serrian.game.character.attributes import AttributeName, get_modifier
from serrian.game.character.skills import SkillType
from serrian.game.world.race import DEFAULT_BASE_MOVEMENT

if TYPE_CHECKING:
    from serrian.game.character.allocation import SkillAllocationGraph
    from serrian.game.character.subject import BuildSubject

logger = structlog.get_logger(__name__)

# Percent of total HP per hit location; chest absorbs the rounding remainder
LOCATION_SHARES = (
    ("head", 10),
    ("chest", 30),
    ("left_arm", 15),
    ("right_arm", 15),
    ("left_leg", 15),
    ("right_leg", 15),
)


@dataclass(frozen=True)
class LocationHP:
    """Hit points per body location."""

    head: int
    chest: int
    left_arm: int
    right_arm: int
    left_leg: int
    right_leg: int

    @property
    def total(self) -> int:
        return (
            self.head + self.chest + self.left_arm + self.right_arm + self.left_leg + self.right_leg
        )


@dataclass(frozen=True)
class DerivedStats:
    """Container for all derived statistics of a subject."""

    hp: int
    initiative: int
    mana: int
    location_hp: LocationHP


def calculate_hp(constitution: int) -> int:
    """Total hit points: twice constitution plus its modifier."""
    return constitution * 2 + get_modifier(constitution)


def calculate_base_initiative(dexterity: int) -> int:
    """
    Base initiative from dexterity.

    Starts at 1 and gains one step for every five points of dexterity from 5
    upward.

    Examples:
        DEX 4 -> 1, DEX 5 -> 2, DEX 12 -> 3, DEX 25 -> 6
    """
    if dexterity < 5:
        return 1
    return 1 + dexterity // 5


def calculate_initiative(dexterity: int, base_movement: int | None = None) -> int:
    """Total initiative: base initiative times the race's base movement."""
    movement = DEFAULT_BASE_MOVEMENT if base_movement is None else base_movement
    return calculate_base_initiative(dexterity) * movement


def calculate_mana(subject: "BuildSubject", graph: "SkillAllocationGraph") -> int:
    """
    Mana pool: best magic stabilization rank times the race's base magic.

    Args:
        subject: The build subject
        graph: Allocation graph used to rank the stabilization skills

    Returns:
        Mana, or 0 without a race or a trained magic stabilization skill
    """
    if subject.race is None:
        return 0

    ranks = [
        graph.rank(subject, key)
        for key, points in subject.allocations.items()
        if points > 0
        and (skill := graph.catalog.get(key.skill_id)) is not None
        and skill.type == SkillType.MAGIC_STABILIZATION
    ]
    if not ranks:
        return 0
    return max(ranks) * subject.race.base_magic


def calculate_location_hp(total: int) -> LocationHP:
    """
    Split total HP across hit locations.

    Head takes 10%, chest 30% and each limb 15%, all rounded down; whatever
    rounding leaves over goes to the chest so the parts sum to the total.
    """
    values = {name: total * percent // 100 for name, percent in LOCATION_SHARES}
    values["chest"] += total - sum(values.values())
    return LocationHP(**values)


def recalculate(subject: "BuildSubject", graph: "SkillAllocationGraph") -> DerivedStats:
    """
    Recompute and store a subject's derived stats.

    Args:
        subject: The build subject (hp, initiative and mana are updated)
        graph: Allocation graph for skill-dependent stats

    Returns:
        The freshly computed DerivedStats
    """
    base_movement = subject.race.base_movement if subject.race is not None else None

    hp = calculate_hp(subject.score(AttributeName.CONSTITUTION))
    initiative = calculate_initiative(subject.score(AttributeName.DEXTERITY), base_movement)
    mana = calculate_mana(subject, graph)

    subject.hp = hp
    subject.initiative = initiative
    subject.mana = mana

    logger.debug(
        "derived_stats_recalculated",
        subject_id=subject.id,
        hp=hp,
        initiative=initiative,
        mana=mana,
    )
    return DerivedStats(
        hp=hp,
        initiative=initiative,
        mana=mana,
        location_hp=calculate_location_hp(hp),
    )
