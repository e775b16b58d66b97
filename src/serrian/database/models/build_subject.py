"""Stored form of a build subject (character or NPC)."""

from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from serrian.game.character.attributes import AttributeName
from serrian.game.character.skills import AllocationKey, AllocationMap
from serrian.game.character.subject import BuildSubject, ProgressionState, SubjectKind
from serrian.game.world.race import Race

from .base import Base, TimestampMixin


def dump_allocations(allocations: AllocationMap) -> list[dict[str, Any]]:
    """Serialize an allocation map as a list of {"path": [...], "points": n}."""
    return [{"path": list(key.path), "points": points} for key, points in allocations.items()]


def load_allocations(rows: list[dict[str, Any]] | None) -> AllocationMap:
    """Inverse of dump_allocations."""
    return {AllocationKey(tuple(row["path"])): int(row["points"]) for row in rows or []}


class BuildSubjectRecord(Base, TimestampMixin):
    """Build subject row: attributes, allocations and the XP ledger."""

    __tablename__ = "build_subjects"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Subject identifier (UUID string)",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        comment="Display name",
    )

    kind: Mapped[SubjectKind] = mapped_column(
        Enum(SubjectKind),
        nullable=False,
        default=SubjectKind.CHARACTER,
        comment="Character or NPC",
    )

    campaign_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
        comment="Campaign whose budget applies",
    )

    attributes: Mapped[dict[str, int]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Attribute code -> score",
    )

    race_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Race identifier",
    )

    race: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
        comment="Race snapshot at save time",
    )

    allocations: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Skill allocations as lineage path + points",
    )

    skill_checkpoint: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Allocation floor saved at the last checkpoint",
    )

    is_initial_setup_locked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="0",
        comment="Whether the starting skill budget is locked in",
    )

    xp_spent: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="XP spent on skills since locking",
    )

    xp_checkpoint: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="XP spent at the last checkpoint",
    )

    challenge_rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        server_default="1",
        comment="Challenge rating (1-50)",
    )

    hp_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    initiative: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mana: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @classmethod
    def from_subject(cls, subject: BuildSubject) -> "BuildSubjectRecord":
        """Build a row from an in-memory subject."""
        progression = subject.progression
        return cls(
            id=subject.id,
            name=subject.name,
            kind=subject.kind,
            campaign_id=subject.campaign_id,
            attributes={attr.value: score for attr, score in subject.attributes.items()},
            race_id=subject.race.id if subject.race else None,
            race=subject.race.model_dump(mode="json") if subject.race else None,
            allocations=dump_allocations(subject.allocations),
            skill_checkpoint=dump_allocations(progression.checkpoint),
            is_initial_setup_locked=progression.locked,
            xp_spent=progression.xp_spent,
            xp_checkpoint=progression.xp_checkpoint,
            challenge_rating=subject.challenge_rating,
            hp_total=subject.hp,
            initiative=subject.initiative,
            mana=subject.mana,
        )

    def to_subject(self) -> BuildSubject:
        """Rebuild the in-memory subject."""
        return BuildSubject(
            id=self.id,
            name=self.name,
            kind=self.kind,
            campaign_id=self.campaign_id,
            attributes={AttributeName.parse(code): score for code, score in self.attributes.items()},
            race=Race.model_validate(self.race) if self.race else None,
            allocations=load_allocations(self.allocations),
            progression=ProgressionState(
                locked=self.is_initial_setup_locked,
                xp_spent=self.xp_spent,
                xp_checkpoint=self.xp_checkpoint,
                checkpoint=load_allocations(self.skill_checkpoint),
            ),
            challenge_rating=self.challenge_rating,
            hp=self.hp_total,
            initiative=self.initiative,
            mana=self.mana,
        )
