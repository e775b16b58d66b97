"""Skill allocation over the tiered prerequisite graph.

The graph decides which skills are purchasable, computes rank and percentage
by walking a key's lineage back to its tier 1 root, and applies the starting
(pre-lock) point budget. Once a subject is locked, allocation is handed to the
XP economy in :mod:`serrian.game.systems.experience`.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from serrian.game.character.attributes import get_modifier
from serrian.game.character.skills import (
    MAGIC_TIER2_TYPES,
    AllocationKey,
    AllocationMap,
    AllocationResult,
    Skill,
    SkillCatalog,
    SkillType,
    skill_points_spent,
)
from serrian.game.errors import (
    BudgetExceededError,
    InvalidLineageError,
    PrerequisiteNotMetError,
    SkillCapExceededError,
)
from serrian.game.systems import experience

if TYPE_CHECKING:
    from serrian.game.character.subject import BuildSubject
    from serrian.game.systems.budget import BudgetConfig

logger = structlog.get_logger(__name__)

# Per-key cap while spending the starting skill budget
MAX_INITIAL_POINTS = 10

UNTRAINED_PERCENT = 100


class SkillAllocationGraph:
    """Allocation rules for one skill catalog under one campaign budget."""

    def __init__(self, catalog: SkillCatalog, config: "BudgetConfig") -> None:
        self.catalog = catalog
        self.config = config

    # ------------------------------------------------------------------
    # Keys and lineages
    # ------------------------------------------------------------------

    def allocation_key(self, skill_id: str, lineage: Iterable[str] = ()) -> AllocationKey:
        """
        Build and validate the allocation key for a skill.

        Args:
            skill_id: The skill being allocated
            lineage: Ancestor ids, tier 1 root first; empty for tier 1 skills

        Returns:
            The allocation key

        Raises:
            UnknownSkillError: If the skill is not in the catalog
            InvalidLineageError: If the lineage does not fit the skill's tier
                and declared parents
        """
        skill = self.catalog.require(skill_id)
        lineage = tuple(lineage)
        if lineage not in self.lineages_for(skill):
            raise InvalidLineageError(
                f"'{':'.join(lineage) or '(none)'}' is not a valid lineage for "
                f"tier {skill.tier} skill '{skill.name}'",
                key=AllocationKey.of(skill_id, lineage),
            )
        return AllocationKey.of(skill_id, lineage)

    def lineages_for(self, skill: Skill) -> list[tuple[str, ...]]:
        """Every ancestor path the catalog allows for a skill."""
        if skill.tier == 2:
            return [(parent.id,) for parent in self.catalog.parents_of(skill) if parent.tier == 1]
        if skill.tier == 3:
            return [
                (grandparent.id, parent.id)
                for parent in self.catalog.parents_of(skill)
                if parent.tier == 2
                for grandparent in self.catalog.parents_of(parent)
                if grandparent.tier == 1
            ]
        return [()]

    # ------------------------------------------------------------------
    # Unlock rule
    # ------------------------------------------------------------------

    def is_unlocked(
        self,
        skill: Skill,
        allocations: AllocationMap,
        lineage: Iterable[str] | None = None,
    ) -> bool:
        """
        Check whether a skill can currently receive points.

        Without a lineage the skill counts as unlocked if any ancestor tree
        opens it; with one, only that tree is considered.

        Args:
            skill: The skill to check
            allocations: Current allocation map
            lineage: Optional ancestor path to check

        Returns:
            True if the skill (through the lineage, if given) is purchasable
        """
        if not skill.is_gated:
            return True

        if lineage is not None:
            key = self.allocation_key(skill.id, lineage)
            candidates = [key.parent]
        else:
            candidates = [AllocationKey(path) for path in self.lineages_for(skill)]

        threshold = self.config.points_needed_for_next_tier
        for parent_key in candidates:
            parent = self.catalog.require(parent_key.skill_id)
            points = allocations.get(parent_key, 0)
            if skill.tier == 2:
                if parent.type == SkillType.MAGIC_ACCESS:
                    if points >= 1:
                        return True
                elif points >= threshold:
                    return True
            else:
                if parent.type in MAGIC_TIER2_TYPES:
                    if points >= 1 and any(
                        allocations.get(AllocationKey.of(grandparent_id), 0) >= 1
                        for grandparent_id in parent.parents
                    ):
                        return True
                elif points >= threshold:
                    return True
        return False

    def unlocked_skills(self, allocations: AllocationMap) -> list[Skill]:
        """Catalog skills purchasable through at least one lineage."""
        return [skill for skill in self.catalog if self.is_unlocked(skill, allocations)]

    # ------------------------------------------------------------------
    # Rank and percentage
    # ------------------------------------------------------------------

    def rank(self, subject: "BuildSubject", key: AllocationKey) -> int:
        """
        Calculate a skill's rank at one allocation key.

        Tier 1 rank is points plus the attribute modifier. Tier 2 and 3 ranks
        add their own points to the parent key's rank, so the modifier is
        applied once at the lineage root. Attribute-free skills rank at their
        points alone.
        """
        skill = self.catalog.require(key.skill_id)
        points = subject.points(key)

        if not skill.has_attribute:
            return points

        parent_key = key.parent
        if skill.is_gated and parent_key is not None:
            return self.rank(subject, parent_key) + points

        return points + get_modifier(subject.score(skill.primary_attribute))

    def percent(self, subject: "BuildSubject", key: AllocationKey) -> int:
        """Skill check percentage: 100 - (rank + attribute score)."""
        skill = self.catalog.require(key.skill_id)
        points = subject.points(key)

        if points == 0:
            return UNTRAINED_PERCENT
        if not skill.has_attribute:
            return UNTRAINED_PERCENT - points

        return UNTRAINED_PERCENT - (
            self.rank(subject, key) + subject.score(skill.primary_attribute)
        )

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def tier_points_spent(self, allocations: AllocationMap) -> dict[int | None, int]:
        """Points spent per skill tier."""
        totals: dict[int | None, int] = {1: 0, 2: 0, 3: 0, None: 0}
        for key, points in allocations.items():
            skill = self.catalog.get(key.skill_id)
            if skill is not None:
                totals[skill.tier] += points
        return totals

    def skill_points_remaining(self, subject: "BuildSubject") -> int:
        """Starting skill points left (0 once locked)."""
        if subject.locked:
            return 0
        return self.config.skill_points - skill_points_spent(subject.allocations)

    def allocate(
        self,
        subject: "BuildSubject",
        skill_id: str,
        new_points: int,
        lineage: Iterable[str] = (),
    ) -> AllocationResult:
        """
        Set the points a subject has in a skill (within one lineage).

        Args:
            subject: The build subject
            skill_id: Skill to allocate
            new_points: Requested points at the key
            lineage: Ancestor ids for tier 2/3 skills, tier 1 root first

        Returns:
            AllocationResult describing the accepted change

        Raises:
            UnknownSkillError: If the skill is not in the catalog
            InvalidLineageError: If the lineage does not fit the skill
            PrerequisiteNotMetError: If points are added to a locked-out lineage
            SkillCapExceededError: If a key would pass 10 points before locking
            BudgetExceededError: If the starting skill budget would be exceeded
            LockViolationError: Locked-mode checkpoint or step rule broken
            InsufficientXPError: Locked-mode purchase unaffordable
        """
        key = self.allocation_key(skill_id, lineage)
        skill = self.catalog.require(skill_id)
        current = subject.points(key)

        if new_points > current and not self.is_unlocked(
            skill, subject.allocations, key.lineage if skill.is_gated else None
        ):
            raise PrerequisiteNotMetError(
                f"'{skill.name}' is not unlocked through {':'.join(key.lineage)}",
                key=key,
                attempted=new_points,
                limit=self.config.points_needed_for_next_tier,
            )

        if subject.locked:
            return experience.apply_xp_allocation(subject, key, new_points)

        if new_points > MAX_INITIAL_POINTS:
            raise SkillCapExceededError(
                f"'{skill.name}' is capped at {MAX_INITIAL_POINTS} points before locking",
                key=key,
                attempted=new_points,
                limit=MAX_INITIAL_POINTS,
            )

        if new_points > current:
            remaining = self.skill_points_remaining(subject)
            if new_points - current > remaining:
                raise BudgetExceededError(
                    f"Raising '{skill.name}' to {new_points} needs {new_points - current} "
                    f"skill points, only {max(0, remaining)} remain",
                    key=key,
                    attempted=new_points,
                    limit=current + max(0, remaining),
                )

        if new_points <= 0:
            subject.allocations.pop(key, None)
            new_points = 0
        else:
            subject.allocations[key] = new_points

        logger.debug(
            "skill_allocated",
            subject_id=subject.id,
            key=str(key),
            previous=current,
            points=new_points,
        )
        return AllocationResult(key=key, previous=current, points=new_points)
