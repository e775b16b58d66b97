"""Build subject aggregate: the character or NPC being built."""

import enum
import uuid
from dataclasses import dataclass, field

from serrian.game.character.attributes import DEFAULT_ATTRIBUTE_SCORE, AttributeName
from serrian.game.character.skills import AllocationKey, AllocationMap
from serrian.game.world.race import Race

MIN_CHALLENGE_RATING = 1
MAX_CHALLENGE_RATING = 50


class SubjectKind(enum.Enum):
    """What is being built."""

    CHARACTER = "character"
    NPC = "npc"


def default_attributes() -> dict[AttributeName, int]:
    """Fresh attribute block with every score at the default."""
    return {attr: DEFAULT_ATTRIBUTE_SCORE for attr in AttributeName}


@dataclass
class ProgressionState:
    """Locked/unlocked state and the XP ledger.

    Attributes:
        locked: True once the starting skill budget was spent and locked in
        xp_spent: XP spent on skills since locking
        xp_checkpoint: xp_spent at the last checkpoint
        checkpoint: Allocation floor saved at lock time or the last checkpoint
    """

    locked: bool = False
    xp_spent: int = 0
    xp_checkpoint: int = 0
    checkpoint: AllocationMap = field(default_factory=dict)

    def floor_for(self, key: AllocationKey) -> int:
        """Checkpointed value for a key (0 if it was not allocated then)."""
        return self.checkpoint.get(key, 0)


@dataclass
class BuildSubject:
    """A character or NPC under construction.

    The engine mutates this aggregate in place; callers own its lifetime and
    persist it after an accepted operation.
    """

    name: str = ""
    kind: SubjectKind = SubjectKind.CHARACTER
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    campaign_id: str | None = None
    attributes: dict[AttributeName, int] = field(default_factory=default_attributes)
    race: Race | None = None
    allocations: AllocationMap = field(default_factory=dict)
    progression: ProgressionState = field(default_factory=ProgressionState)
    challenge_rating: int = MIN_CHALLENGE_RATING

    # Derived stats written back after every accepted mutation
    hp: int = 0
    initiative: int = 0
    mana: int = 0

    def __post_init__(self) -> None:
        if not MIN_CHALLENGE_RATING <= self.challenge_rating <= MAX_CHALLENGE_RATING:
            raise ValueError(
                f"Challenge rating must be between {MIN_CHALLENGE_RATING} and "
                f"{MAX_CHALLENGE_RATING}, got {self.challenge_rating}"
            )

    def score(self, attr: AttributeName) -> int:
        return self.attributes.get(attr, DEFAULT_ATTRIBUTE_SCORE)

    def points(self, key: AllocationKey) -> int:
        """Points allocated at a key (0 when absent)."""
        return self.allocations.get(key, 0)

    @property
    def locked(self) -> bool:
        return self.progression.locked
