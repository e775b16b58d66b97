"""Random NPC generation.

Builds a complete, valid NPC in one call: a random race, attributes rolled on
a bell curve within the race's limits, the starting skill budget spread over
a handful of suitable tier 1 skills and, above challenge rating 1, the CR's
XP spent on further ranks. Every step goes through the regular allocation
rules, so generated NPCs satisfy the same invariants as hand-built ones.
"""

import math
import random

import structlog

from serrian.game.character.allocation import SkillAllocationGraph
from serrian.game.character.attributes import AttributeName, set_attribute
from serrian.game.character.skills import AllocationKey, Skill, SkillType, skill_points_spent
from serrian.game.character.subject import BuildSubject, SubjectKind
from serrian.game.systems import experience
from serrian.game.systems.derived_stats import recalculate
from serrian.game.world.race import Race

logger = structlog.get_logger(__name__)

# Attribute rolls scale 3d6 onto [ROLL_FLOOR, race maximum]
ROLL_FLOOR = 10
DEFAULT_RACE_MAX = 30

# Primary attribute score a skill needs to be picked for a random NPC
MIN_PRIMARY_SCORE = 15

MAX_RANDOM_CHALLENGE_RATING = 10

# Per-skill cap while spending XP on a random NPC
MAX_GENERATED_POINTS = 30


def roll_attribute_for_race(race_max: int | None, rng: random.Random) -> int:
    """
    Roll one attribute for a race.

    3d6 (3-18) is scaled linearly onto 10..race_max, keeping the bell curve.

    Args:
        race_max: The race's maximum for the attribute (unset or <= 0 means 30)
        rng: Random source

    Returns:
        The rolled score
    """
    if not race_max or race_max <= 0:
        race_max = DEFAULT_RACE_MAX

    roll = rng.randint(1, 6) + rng.randint(1, 6) + rng.randint(1, 6)
    scaled = math.floor(ROLL_FLOOR + (roll - 3) * (race_max - ROLL_FLOOR) / 15 + 0.5)

    return min(race_max, max(ROLL_FLOOR, scaled))


def _points_band(index: int) -> tuple[int, int]:
    # First two picks are specialisations, the next two secondary skills
    if index < 2:
        return 5, 10
    if index < 4:
        return 2, 7
    return 2, 5


def _eligible_skills(graph: SkillAllocationGraph, subject: BuildSubject) -> list[Skill]:
    return [
        skill
        for skill in graph.catalog
        if skill.tier == 1
        and skill.type == SkillType.STANDARD
        and skill.primary_attribute is not None
        and subject.score(skill.primary_attribute) >= MIN_PRIMARY_SCORE
    ]


def _spend_starting_points(
    graph: SkillAllocationGraph, subject: BuildSubject, rng: random.Random
) -> None:
    eligible = _eligible_skills(graph, subject)
    if not eligible:
        return

    count = min(rng.randint(5, 8), len(eligible))
    selected = rng.sample(eligible, count)

    for index, skill in enumerate(selected):
        remaining = graph.skill_points_remaining(subject)
        if remaining <= 0:
            break
        low, high = _points_band(index)
        points = min(rng.randint(low, high), remaining)
        graph.allocate(subject, skill.id, points)

    while graph.skill_points_remaining(subject) > 0:
        open_skills = [
            skill for skill in selected if subject.points(AllocationKey.of(skill.id)) < 10
        ]
        if not open_skills:
            break
        skill = rng.choice(open_skills)
        current = subject.points(AllocationKey.of(skill.id))
        top_up = min(graph.skill_points_remaining(subject), 10 - current)
        graph.allocate(subject, skill.id, current + top_up)


def _spend_xp(graph: SkillAllocationGraph, subject: BuildSubject, rng: random.Random) -> None:
    improvable = list(subject.allocations)
    while experience.remaining_xp(subject) > 0 and improvable:
        key = rng.choice(improvable)
        current = subject.points(key)
        if (
            current < MAX_GENERATED_POINTS
            and experience.purchase_cost(current) <= experience.remaining_xp(subject)
        ):
            graph.allocate(subject, key.skill_id, current + 1, key.lineage)
        else:
            improvable.remove(key)


def generate_npc(
    graph: SkillAllocationGraph,
    races: list[Race],
    rng: random.Random | None = None,
    challenge_rating: int | None = None,
    campaign_id: str | None = None,
) -> BuildSubject:
    """
    Generate a random NPC.

    Args:
        graph: Allocation graph (catalog and campaign budget)
        races: Races to choose from
        rng: Random source; a fresh one is used if omitted
        challenge_rating: Fixed CR, otherwise rolled 1-10
        campaign_id: Campaign the NPC belongs to

    Returns:
        The generated BuildSubject with derived stats calculated

    Raises:
        ValueError: If no races are available
    """
    if not races:
        raise ValueError("No races available to generate an NPC")

    rng = rng or random.Random()
    race = rng.choice(races)
    cr = challenge_rating or rng.randint(1, MAX_RANDOM_CHALLENGE_RATING)

    npc = BuildSubject(
        name=f"Random {race.name}",
        kind=SubjectKind.NPC,
        campaign_id=campaign_id,
        race=race,
        challenge_rating=cr,
    )

    # Start from an empty pool so every roll is charged against the budget
    rolls = {attr: roll_attribute_for_race(race.max_for(attr), rng) for attr in AttributeName}
    npc.attributes = {attr: 0 for attr in AttributeName}
    for attr, value in rolls.items():
        set_attribute(npc, attr, value, graph.config)

    _spend_starting_points(graph, npc, rng)

    spent = skill_points_spent(npc.allocations)
    if cr > 1 and spent == graph.config.skill_points:
        experience.lock(npc, graph.config)
        _spend_xp(graph, npc, rng)
        # The starting allocation stays the floor; generated XP is the baseline
        npc.progression.xp_checkpoint = npc.progression.xp_spent

    recalculate(npc, graph)

    logger.info(
        "npc_generated",
        subject_id=npc.id,
        race=race.id,
        challenge_rating=cr,
        skill_points=spent,
        xp_spent=npc.progression.xp_spent,
        locked=npc.locked,
    )
    return npc
