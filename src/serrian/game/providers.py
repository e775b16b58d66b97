"""Interfaces the build engine consumes, with file- and memory-backed versions."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from serrian.config import get_settings
from serrian.game.character.skills import Skill, SkillCatalog
from serrian.game.systems.budget import BudgetConfig, CampaignBudget
from serrian.game.world.loader import load_races, load_skill_catalog
from serrian.game.world.race import Race

if TYPE_CHECKING:
    from serrian.game.character.subject import BuildSubject


class SkillCatalogProvider(ABC):
    """Source of skill definitions, loaded once per session."""

    @abstractmethod
    def list_skills(self) -> list[Skill]:
        raise NotImplementedError

    def catalog(self) -> SkillCatalog:
        """Build a validated catalog from the listed skills."""
        return SkillCatalog(self.list_skills())


class RaceProvider(ABC):
    """Source of race definitions."""

    @abstractmethod
    def get_race(self, race_id: str) -> Race | None:
        raise NotImplementedError

    @abstractmethod
    def list_races(self) -> list[Race]:
        raise NotImplementedError


class BudgetConfigProvider(ABC):
    """Source of campaign budget overrides."""

    @abstractmethod
    def get_config(self, campaign_id: str) -> BudgetConfig | CampaignBudget | None:
        raise NotImplementedError


class PersistenceGateway(ABC):
    """Loads and stores build subjects; saves are upserts keyed by subject id."""

    @abstractmethod
    async def load(self, subject_id: str) -> "BuildSubject | None":
        raise NotImplementedError

    @abstractmethod
    async def save(self, subject: "BuildSubject") -> None:
        raise NotImplementedError


class YamlSkillCatalogProvider(SkillCatalogProvider):
    """Skills from a YAML file (defaults to data/config/skills.yaml)."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_settings().config_dir / "skills.yaml"
        self._catalog: SkillCatalog | None = None

    def catalog(self) -> SkillCatalog:
        if self._catalog is None:
            self._catalog = load_skill_catalog(self.path)
        return self._catalog

    def list_skills(self) -> list[Skill]:
        return list(self.catalog())


class YamlRaceProvider(RaceProvider):
    """Races from a YAML file (defaults to data/config/races.yaml)."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_settings().config_dir / "races.yaml"
        self._races: dict[str, Race] | None = None

    def _load(self) -> dict[str, Race]:
        if self._races is None:
            self._races = load_races(self.path)
        return self._races

    def get_race(self, race_id: str) -> Race | None:
        return self._load().get(race_id)

    def list_races(self) -> list[Race]:
        return list(self._load().values())


class StaticSkillCatalogProvider(SkillCatalogProvider):
    """Skills supplied directly, e.g. from another service's response."""

    def __init__(self, skills: list[Skill]) -> None:
        self._skills = list(skills)

    def list_skills(self) -> list[Skill]:
        return list(self._skills)


class StaticRaceProvider(RaceProvider):
    def __init__(self, races: list[Race]) -> None:
        self._races = {race.id: race for race in races}

    def get_race(self, race_id: str) -> Race | None:
        return self._races.get(race_id)

    def list_races(self) -> list[Race]:
        return list(self._races.values())


class StaticBudgetConfigProvider(BudgetConfigProvider):
    """Campaign budgets held in memory, keyed by campaign id."""

    def __init__(self, budgets: Mapping[str, BudgetConfig | CampaignBudget]) -> None:
        self._budgets = dict(budgets)

    def get_config(self, campaign_id: str) -> BudgetConfig | CampaignBudget | None:
        return self._budgets.get(campaign_id)
