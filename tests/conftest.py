"""Shared fixtures for all tests."""

import os

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from serrian.database.models import Base
from serrian.game.character.allocation import SkillAllocationGraph
from serrian.game.character.skills import AllocationKey, Skill, SkillCatalog
from serrian.game.character.subject import BuildSubject
from serrian.game.systems.budget import BudgetConfig
from serrian.game.world.race import Race


# Set the test database URL before anything caches the settings
@pytest.fixture(scope="session", autouse=True)
def use_test_database(tmp_path_factory):
    """Point the global engine at a throwaway database for the whole session."""
    test_db_path = tmp_path_factory.mktemp("serrian_test") / "test_serrian.db"
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"

    import serrian.database.engine as engine_module

    engine_module._engine = None
    engine_module._async_session_factory = None

    from serrian.config import get_settings

    get_settings.cache_clear()

    yield

    engine_module._engine = None
    engine_module._async_session_factory = None


@pytest.fixture
async def db_session():
    """Create a test database session with in-memory SQLite."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()

    await engine.dispose()


def make_skills() -> list[Skill]:
    """Small catalog covering every tier and unlock rule."""
    return [
        Skill(id="athletics", name="Athletics", type="standard", tier=1, primary_attribute="STR"),
        Skill(id="swordplay", name="Swordplay", type="standard", tier=1, primary_attribute="DEX"),
        Skill(id="stealth", name="Stealth", type="standard", tier=1, primary_attribute="DEX"),
        Skill(id="endurance", name="Endurance", type="standard", tier=1, primary_attribute="CON"),
        Skill(id="lore", name="Lore", type="standard", tier=1, primary_attribute="INT"),
        Skill(id="perception", name="Perception", type="standard", tier=1, primary_attribute="WIS"),
        Skill(id="persuasion", name="Persuasion", type="standard", tier=1, primary_attribute="CHA"),
        Skill(id="arcane", name="Arcane Casting", type="magic access", tier=1, primary_attribute="INT"),
        Skill(id="divine", name="Divine Casting", type="magic access", tier=1, primary_attribute="WIS"),
        Skill(
            id="mana_control",
            name="Mana Control",
            type="magic stabilization",
            tier=1,
            primary_attribute="INT",
        ),
        Skill(
            id="fire",
            name="Sphere of Fire",
            type="sphere",
            tier=2,
            primary_attribute="INT",
            parent_id="arcane",
            parent2_id="divine",
        ),
        Skill(
            id="dual",
            name="Dual Wielding",
            type="standard",
            tier=2,
            primary_attribute="DEX",
            parent_id="swordplay",
        ),
        Skill(
            id="fireball",
            name="Fireball",
            type="spell",
            tier=3,
            primary_attribute="INT",
            parent_id="fire",
        ),
        Skill(
            id="whirlwind",
            name="Whirlwind",
            type="standard",
            tier=3,
            primary_attribute="DEX",
            parent_id="dual",
        ),
        Skill(
            id="darkvision",
            name="Darkvision",
            type="special ability",
            tier=None,
            primary_attribute="NA",
        ),
    ]


@pytest.fixture
def catalog() -> SkillCatalog:
    """Validated in-memory skill catalog."""
    return SkillCatalog(make_skills())


@pytest.fixture
def budget() -> BudgetConfig:
    """Default campaign budget: 150 attribute, 50 skill, 25 to unlock."""
    return BudgetConfig()


@pytest.fixture
def graph(catalog: SkillCatalog, budget: BudgetConfig) -> SkillAllocationGraph:
    """Allocation graph over the test catalog and default budget."""
    return SkillAllocationGraph(catalog, budget)


@pytest.fixture
def subject() -> BuildSubject:
    """Fresh character with every attribute at 25."""
    return BuildSubject(name="Kvothe")


@pytest.fixture
def elf() -> Race:
    """Race with a few attribute caps and base magic."""
    return Race(
        id="elf",
        name="Elf",
        base_magic=3,
        base_movement=6,
        max_attributes={"STR": 40, "DEX": 55, "INT": 55},
    )


@pytest.fixture
def full_subject(subject: BuildSubject) -> BuildSubject:
    """Character with exactly 50 starting points over five tier 1 skills."""
    for skill_id in ("athletics", "swordplay", "lore", "arcane", "perception"):
        subject.allocations[AllocationKey.of(skill_id)] = 10
    return subject
