"""Skill catalog and allocation keys for the Serrian build engine.

Skills form a tiered prerequisite graph: tier 1 skills are always open, tier 2
skills open through a tier 1 parent and tier 3 skills through a tier 2 parent.
A skill may declare up to three parents, so the same tier 2 or 3 skill can be
reached through several ancestor trees and accrues points separately in each.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from serrian.game.character.attributes import NO_ATTRIBUTE_CODES, AttributeName
from serrian.game.errors import UnknownSkillError

logger = structlog.get_logger(__name__)

MAX_PARENTS = 3


class SkillType(StrEnum):
    """Catalog skill types; unlock and derived-stat rules branch on these."""

    STANDARD = "standard"
    MAGIC = "magic"
    MAGIC_ACCESS = "magic access"
    SPHERE = "sphere"
    DISCIPLINE = "discipline"
    RESONANCE = "resonance"
    MAGIC_STABILIZATION = "magic stabilization"
    SPELL = "spell"
    PSIONIC_SKILL = "psionic skill"
    REVERBERATION = "reverberation"
    SPECIAL_ABILITY = "special ability"


# Tier 2 types whose tier 3 children open at a single point
MAGIC_TIER2_TYPES = frozenset({SkillType.SPHERE, SkillType.DISCIPLINE, SkillType.RESONANCE})


class CatalogValidationError(Exception):
    """Raised when a skill catalog is inconsistent (missing parents, cycles)."""

    pass


class Skill(BaseModel):
    """
    A skill definition from the catalog.

    Attributes:
        id: Opaque unique identifier
        name: Display name
        type: Skill type tag
        tier: 1, 2 or 3; None for ungated special abilities
        primary_attribute: Attribute the rank is built on, None for "NA"
        secondary_attribute: Secondary attribute, None for "NA"
        parents: Up to three parent skill ids, in declared order
        definition: Optional rules text
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique skill identifier")
    name: str = Field(..., description="Display name of the skill")
    type: SkillType = Field(default=SkillType.STANDARD, description="Skill type tag")
    tier: Literal[1, 2, 3] | None = Field(default=None, description="Skill tier")
    primary_attribute: AttributeName | None = None
    secondary_attribute: AttributeName | None = None
    parents: tuple[str, ...] = Field(default=(), max_length=MAX_PARENTS)
    definition: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _collect_parent_columns(cls, data: Any) -> Any:
        # Catalog rows store parents in three columns: parent_id, parent2_id, parent3_id
        if isinstance(data, dict) and "parents" not in data:
            columns = ("parent_id", "parent2_id", "parent3_id")
            if any(col in data for col in columns):
                data = {k: v for k, v in data.items() if k not in columns} | {
                    "parents": [data[col] for col in columns if data.get(col)]
                }
        return data

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("tier", mode="before")
    @classmethod
    def _normalize_tier(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().upper() in NO_ATTRIBUTE_CODES:
            return None
        return value

    @field_validator("primary_attribute", "secondary_attribute", mode="before")
    @classmethod
    def _parse_attribute(cls, value: Any) -> Any:
        if value is None or isinstance(value, AttributeName):
            return value
        if str(value).strip().upper() in NO_ATTRIBUTE_CODES:
            return None
        return AttributeName.parse(value)

    @property
    def has_attribute(self) -> bool:
        """Whether rank and percentage depend on an attribute score."""
        return self.primary_attribute is not None

    @property
    def is_gated(self) -> bool:
        """Whether the skill needs an unlocked parent (tier 2 or 3)."""
        return self.tier in (2, 3)


@dataclass(frozen=True)
class AllocationKey:
    """One (lineage, skill) pair in an allocation map.

    The path is the ordered chain of skill ids from the tier 1 root down to
    the skill itself: ``("a",)`` for tier 1, ``("a", "b")`` for tier 2 and
    ``("a", "b", "c")`` for tier 3.
    """

    path: tuple[str, ...]

    def __post_init__(self) -> None:
        path = tuple(self.path)
        if not path or not all(path):
            raise ValueError(f"Allocation key needs at least one non-empty id: {self.path!r}")
        object.__setattr__(self, "path", path)

    @classmethod
    def of(cls, skill_id: str, lineage: Iterable[str] = ()) -> "AllocationKey":
        """Build the key for a skill reached through the given ancestors."""
        return cls((*lineage, skill_id))

    @property
    def skill_id(self) -> str:
        return self.path[-1]

    @property
    def lineage(self) -> tuple[str, ...]:
        """Ancestor ids, root first, without the skill itself."""
        return self.path[:-1]

    @property
    def parent(self) -> "AllocationKey | None":
        """Key of the parent allocation this one builds on, if any."""
        if len(self.path) == 1:
            return None
        return AllocationKey(self.path[:-1])

    def __str__(self) -> str:
        return ":".join(self.path)


AllocationMap = dict[AllocationKey, int]


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of an accepted allocation.

    Attributes:
        key: The allocation key that changed
        previous: Points at the key before the call
        points: Points at the key after the call
        xp_delta: XP charged (positive) or refunded (negative)
    """

    key: AllocationKey
    previous: int
    points: int
    xp_delta: int = 0


def skill_points_spent(allocations: AllocationMap) -> int:
    """Total points across every allocation key."""
    return sum(allocations.values())


class SkillCatalog:
    """Read-only, validated set of skill definitions for one build session."""

    def __init__(self, skills: Iterable[Skill]) -> None:
        self._skills: dict[str, Skill] = {}
        for skill in skills:
            if skill.id in self._skills:
                raise CatalogValidationError(f"Duplicate skill id: {skill.id}")
            self._skills[skill.id] = skill
        self._validate()
        logger.debug("skill_catalog_built", count=len(self._skills))

    def __contains__(self, skill_id: object) -> bool:
        return skill_id in self._skills

    def __iter__(self) -> Iterator[Skill]:
        return iter(self._skills.values())

    def __len__(self) -> int:
        return len(self._skills)

    def get(self, skill_id: str) -> Skill | None:
        return self._skills.get(skill_id)

    def require(self, skill_id: str) -> Skill:
        """
        Get a skill that must exist.

        Raises:
            UnknownSkillError: If the id is not in the catalog
        """
        skill = self._skills.get(skill_id)
        if skill is None:
            raise UnknownSkillError(f"Unknown skill: {skill_id}", key=skill_id)
        return skill

    def parents_of(self, skill: Skill) -> list[Skill]:
        """Parent skills in declared order."""
        return [self._skills[parent_id] for parent_id in skill.parents]

    def children_of(self, skill_id: str, tier: int | None = None) -> list[Skill]:
        """Skills that list skill_id as a parent, optionally of one tier."""
        return [
            skill
            for skill in self._skills.values()
            if skill_id in skill.parents and (tier is None or skill.tier == tier)
        ]

    def of_type(self, skill_type: SkillType) -> list[Skill]:
        return [skill for skill in self._skills.values() if skill.type == skill_type]

    def _validate(self) -> None:
        for skill in self._skills.values():
            for parent_id in skill.parents:
                if parent_id == skill.id:
                    raise CatalogValidationError(f"Skill '{skill.id}' lists itself as a parent")
                if parent_id not in self._skills:
                    raise CatalogValidationError(
                        f"Skill '{skill.id}' references missing parent '{parent_id}'"
                    )

        # Rank walks parents recursively, so the parent graph must be acyclic
        visiting: set[str] = set()
        visited: set[str] = set()

        def visit(skill_id: str, trail: list[str]) -> None:
            if skill_id in visited:
                return
            if skill_id in visiting:
                cycle = " -> ".join([*trail[trail.index(skill_id) :], skill_id])
                raise CatalogValidationError(f"Skill parent cycle: {cycle}")
            visiting.add(skill_id)
            for parent_id in self._skills[skill_id].parents:
                visit(parent_id, [*trail, skill_id])
            visiting.discard(skill_id)
            visited.add(skill_id)

        for skill_id in self._skills:
            visit(skill_id, [])
