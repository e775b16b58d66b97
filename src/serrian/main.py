"""Command line entry point: validate the catalogs or roll random NPCs."""

import argparse
import asyncio
import logging
import random
import sys

import structlog

from serrian.config import get_settings
from serrian.database.engine import close_db, init_db
from serrian.database.gateway import SqlAlchemyPersistenceGateway
from serrian.game.character.skills import CatalogValidationError
from serrian.game.engine import BuildService
from serrian.game.providers import YamlRaceProvider, YamlSkillCatalogProvider
from serrian.game.world.loader import CatalogLoadError

logger = structlog.get_logger(__name__)


def configure_logging() -> None:
    """Apply the configured log level and renderer to structlog."""
    settings = get_settings()
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
    )


def check_catalogs() -> None:
    """Load both catalogs and print a per-tier summary."""
    catalog = YamlSkillCatalogProvider().catalog()
    races = YamlRaceProvider().list_races()

    tiers: dict[int | None, int] = {}
    for skill in catalog:
        tiers[skill.tier] = tiers.get(skill.tier, 0) + 1

    print(f"{len(catalog)} skills, {len(races)} races")
    for tier in (1, 2, 3, None):
        label = f"tier {tier}" if tier is not None else "untiered"
        print(f"  {label}: {tiers.get(tier, 0)}")


async def generate(count: int, campaign_id: str | None, seed: int | None) -> None:
    """Generate and store random NPCs, printing a line per NPC."""
    await init_db()
    service = BuildService(
        catalog=YamlSkillCatalogProvider().catalog(),
        gateway=SqlAlchemyPersistenceGateway(),
        races=YamlRaceProvider(),
    )
    rng = random.Random(seed)
    try:
        for _ in range(count):
            npc = await service.generate_npc(campaign_id=campaign_id, rng=rng)
            print(
                f"{npc.id}  {npc.name:<16} CR {npc.challenge_rating:>2}  "
                f"HP {npc.hp:>3}  Init {npc.initiative:>3}  Mana {npc.mana:>3}"
            )
    finally:
        await close_db()


def run() -> None:
    """Synchronous entry point for the ``serrian`` command."""
    parser = argparse.ArgumentParser(description="Serrian character build engine")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("check", help="Validate skills.yaml and races.yaml")

    npc_parser = commands.add_parser("npc", help="Generate and store random NPCs")
    npc_parser.add_argument("--count", "-n", type=int, default=1, help="How many NPCs")
    npc_parser.add_argument("--campaign", default=None, help="Campaign id for budgets")
    npc_parser.add_argument("--seed", type=int, default=None, help="Random seed")

    args = parser.parse_args()
    configure_logging()

    try:
        if args.command == "check":
            check_catalogs()
        else:
            asyncio.run(generate(args.count, args.campaign, args.seed))
    except (CatalogLoadError, CatalogValidationError) as e:
        logger.error("catalog_invalid", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    run()
