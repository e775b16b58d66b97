"""Build service: the async entry point for callers editing stored builds."""

import asyncio
import random
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import structlog

from serrian.game.character import attributes
from serrian.game.character.allocation import SkillAllocationGraph
from serrian.game.character.skills import AllocationResult, SkillCatalog
from serrian.game.character.subject import (
    MAX_CHALLENGE_RATING,
    MIN_CHALLENGE_RATING,
    BuildSubject,
    SubjectKind,
)
from serrian.game.errors import BuildError, SubjectNotFoundError
from serrian.game.providers import BudgetConfigProvider, PersistenceGateway, RaceProvider
from serrian.game.systems import experience
from serrian.game.systems.budget import resolve_budget
from serrian.game.systems.derived_stats import recalculate
from serrian.game.systems.npc_generator import generate_npc

logger = structlog.get_logger(__name__)


class BuildService:
    """
    Coordinates engine calls with persistence.

    Each operation loads the subject, applies one engine call, recomputes
    derived stats and saves. Operations on the same subject are serialized
    with a per-subject lock, so budget and checkpoint checks never interleave.
    A rejected call raises and nothing is saved.
    """

    def __init__(
        self,
        catalog: SkillCatalog,
        gateway: PersistenceGateway,
        budgets: BudgetConfigProvider | None = None,
        races: RaceProvider | None = None,
    ) -> None:
        self.catalog = catalog
        self.gateway = gateway
        self.budgets = budgets
        self.races = races
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def graph_for(self, subject: BuildSubject) -> SkillAllocationGraph:
        """Allocation graph under the subject's campaign budget."""
        return SkillAllocationGraph(self.catalog, resolve_budget(subject.campaign_id, self.budgets))

    @asynccontextmanager
    async def _subject_lock(self, subject_id: str) -> AsyncIterator[None]:
        # Entries live only while a caller holds or waits on the lock
        lock = self._locks.setdefault(subject_id, asyncio.Lock())
        self._lock_users[subject_id] = self._lock_users.get(subject_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[subject_id] -= 1
            if not self._lock_users[subject_id]:
                del self._lock_users[subject_id]
                del self._locks[subject_id]

    @asynccontextmanager
    async def _editing(
        self, subject_id: str, operation: str
    ) -> AsyncIterator[tuple[BuildSubject, SkillAllocationGraph]]:
        async with self._subject_lock(subject_id):
            subject = await self.gateway.load(subject_id)
            if subject is None:
                raise SubjectNotFoundError(f"No build with id {subject_id}", key=subject_id)

            graph = self.graph_for(subject)
            try:
                yield subject, graph
            except BuildError as e:
                logger.info(
                    "build_rejected", subject_id=subject_id, operation=operation, **e.to_dict()
                )
                raise

            recalculate(subject, graph)
            await self.gateway.save(subject)

    async def get(self, subject_id: str) -> BuildSubject:
        subject = await self.gateway.load(subject_id)
        if subject is None:
            raise SubjectNotFoundError(f"No build with id {subject_id}", key=subject_id)
        return subject

    async def create(
        self,
        name: str,
        kind: SubjectKind = SubjectKind.CHARACTER,
        campaign_id: str | None = None,
        race_id: str | None = None,
        challenge_rating: int = MIN_CHALLENGE_RATING,
    ) -> BuildSubject:
        """Create and store a fresh build with default attributes."""
        race = self.races.get_race(race_id) if self.races and race_id else None
        subject = BuildSubject(
            name=name,
            kind=kind,
            campaign_id=campaign_id,
            race=race,
            challenge_rating=challenge_rating,
        )
        recalculate(subject, self.graph_for(subject))
        await self.gateway.save(subject)

        logger.info("build_created", subject_id=subject.id, name=name, kind=kind.value)
        return subject

    async def set_attribute(
        self, subject_id: str, attr_name: str, value: int, strict: bool = False
    ) -> int:
        """Set an attribute; clamps to the budget unless strict."""
        async with self._editing(subject_id, "set_attribute") as (subject, graph):
            setter = attributes.set_attribute_strict if strict else attributes.set_attribute
            return setter(subject, attr_name, value, graph.config)

    async def allocate(
        self,
        subject_id: str,
        skill_id: str,
        points: int,
        lineage: Iterable[str] = (),
    ) -> AllocationResult:
        async with self._editing(subject_id, "allocate") as (subject, graph):
            return graph.allocate(subject, skill_id, points, lineage)

    async def lock(self, subject_id: str) -> None:
        async with self._editing(subject_id, "lock") as (subject, graph):
            experience.lock(subject, graph.config)

    async def checkpoint(self, subject_id: str) -> None:
        async with self._editing(subject_id, "checkpoint") as (subject, _graph):
            experience.create_checkpoint(subject)

    async def set_challenge_rating(self, subject_id: str, challenge_rating: int) -> None:
        if not MIN_CHALLENGE_RATING <= challenge_rating <= MAX_CHALLENGE_RATING:
            raise ValueError(
                f"Challenge rating must be between {MIN_CHALLENGE_RATING} and "
                f"{MAX_CHALLENGE_RATING}, got {challenge_rating}"
            )
        async with self._editing(subject_id, "set_challenge_rating") as (subject, _graph):
            subject.challenge_rating = challenge_rating

    async def set_race(self, subject_id: str, race_id: str | None) -> None:
        """Change race; existing scores are kept even if above the new caps."""
        async with self._editing(subject_id, "set_race") as (subject, _graph):
            subject.race = self.races.get_race(race_id) if self.races and race_id else None

    async def generate_npc(
        self, campaign_id: str | None = None, rng: random.Random | None = None
    ) -> BuildSubject:
        """Generate, store and return a random NPC."""
        if self.races is None:
            raise ValueError("Generating NPCs needs a race provider")

        template = BuildSubject(campaign_id=campaign_id)
        npc = generate_npc(
            self.graph_for(template), self.races.list_races(), rng=rng, campaign_id=campaign_id
        )
        await self.gateway.save(npc)
        return npc
