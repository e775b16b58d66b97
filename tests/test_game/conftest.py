"""Shared fixtures for game tests."""

import copy

import pytest

from serrian.game.character.skills import SkillCatalog
from serrian.game.character.subject import BuildSubject
from serrian.game.engine import BuildService
from serrian.game.providers import PersistenceGateway, StaticRaceProvider
from serrian.game.world.race import Race


class MemoryGateway(PersistenceGateway):
    """Stores deep copies so callers can't mutate saved state."""

    def __init__(self) -> None:
        self.saved: dict[str, BuildSubject] = {}
        self.save_count = 0

    async def load(self, subject_id: str) -> BuildSubject | None:
        subject = self.saved.get(subject_id)
        return copy.deepcopy(subject) if subject is not None else None

    async def save(self, subject: BuildSubject) -> None:
        self.saved[subject.id] = copy.deepcopy(subject)
        self.save_count += 1


@pytest.fixture
def gateway() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture
def service(catalog: SkillCatalog, gateway: MemoryGateway, elf: Race) -> BuildService:
    """BuildService over the test catalog with one race available."""
    return BuildService(catalog, gateway, races=StaticRaceProvider([elf]))
