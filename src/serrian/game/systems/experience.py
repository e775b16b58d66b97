"""Experience economy for skill growth after the starting allocation.

Once a subject's starting skill points are spent exactly and locked in, every
further skill point is bought one at a time with XP drawn from the subject's
challenge rating. Buying into a new skill costs 10 XP; each later point costs
as much as the rank just reached. Refunds retrace the same steps, and no key
can drop below the last checkpoint.
"""

from typing import TYPE_CHECKING

import structlog

from serrian.game.character.skills import (
    AllocationKey,
    AllocationResult,
    skill_points_spent,
)
from serrian.game.errors import (
    InsufficientXPError,
    InvalidLockTransitionError,
    LockViolationError,
)

if TYPE_CHECKING:
    from serrian.game.character.subject import BuildSubject
    from serrian.game.systems.budget import BudgetConfig

logger = structlog.get_logger(__name__)

# XP cost of the first point in a skill
NEW_SKILL_XP_COST = 10

# Challenge rating -> XP available for skill growth
CR_TO_XP: dict[int, int] = {
    1: 0, 2: 25, 3: 50, 4: 75, 5: 125, 6: 200, 7: 325, 8: 525, 9: 850, 10: 1020,
    11: 1224, 12: 1469, 13: 1763, 14: 2116, 15: 2540,
    16: 3048, 17: 3658, 18: 4390, 19: 5268, 20: 6322,
    21: 7587, 22: 9105, 23: 10926, 24: 13112, 25: 15735,
    26: 18882, 27: 22659, 28: 27191, 29: 32630, 30: 39156,
    31: 45812, 32: 53501, 33: 62696, 34: 73355, 35: 85826,
    36: 100423, 37: 117517, 38: 137495, 39: 160869, 40: 188217,
    41: 220214, 42: 257650, 43: 301450, 44: 352696, 45: 412654,
    46: 482805, 47: 564882, 48: 660912, 49: 773267, 50: 904722,
}  # fmt: skip


def xp_for_challenge_rating(challenge_rating: int) -> int:
    """XP pool granted by a challenge rating (0 outside the table)."""
    return CR_TO_XP.get(challenge_rating, 0)


def purchase_cost(current_points: int) -> int:
    """
    XP cost to raise a skill by one point.

    Args:
        current_points: Points at the key before the purchase

    Returns:
        10 to buy into a new skill, otherwise the current points

    Examples:
        0 -> 1 costs 10, 1 -> 2 costs 1, 5 -> 6 costs 5
    """
    if current_points == 0:
        return NEW_SKILL_XP_COST
    return current_points


def refund_amount(current_points: int, target_points: int) -> int:
    """
    XP returned for lowering a skill from current_points to target_points.

    The exact inverse of paying purchase_cost for every step in between.
    """
    return sum(purchase_cost(points) for points in range(target_points, current_points))


def available_xp(subject: "BuildSubject") -> int:
    """XP granted by the subject's challenge rating; 0 until locked."""
    if not subject.progression.locked:
        return 0
    return xp_for_challenge_rating(subject.challenge_rating)


def remaining_xp(subject: "BuildSubject") -> int:
    """XP still available to spend."""
    if not subject.progression.locked:
        return 0
    return available_xp(subject) - subject.progression.xp_spent


def has_uncheckpointed_changes(subject: "BuildSubject") -> bool:
    """Whether XP was spent or refunded since the last checkpoint."""
    progression = subject.progression
    return progression.locked and progression.xp_spent != progression.xp_checkpoint


def lock(subject: "BuildSubject", config: "BudgetConfig") -> None:
    """
    Lock the starting allocation and switch the subject to XP spending.

    The current allocation becomes the first checkpoint and the XP ledger is
    reset.

    Args:
        subject: The build subject
        config: Campaign budget (for the exact skill point total)

    Raises:
        InvalidLockTransitionError: If already locked, or if the points spent
            differ from the skill budget
    """
    progression = subject.progression
    if progression.locked:
        raise InvalidLockTransitionError(f"Build '{subject.name}' is already locked")

    spent = skill_points_spent(subject.allocations)
    if spent != config.skill_points:
        raise InvalidLockTransitionError(
            f"Exactly {config.skill_points} skill points must be spent before locking "
            f"({spent} spent)",
            attempted=spent,
            limit=config.skill_points,
        )

    progression.locked = True
    progression.checkpoint = dict(subject.allocations)
    progression.xp_spent = 0
    progression.xp_checkpoint = 0

    logger.info(
        "build_locked",
        subject_id=subject.id,
        subject_name=subject.name,
        skill_points=spent,
        available_xp=available_xp(subject),
    )


def create_checkpoint(subject: "BuildSubject") -> None:
    """
    Save the current allocation as the new floor.

    Irreversible: every key's floor rises to its present value.

    Raises:
        InvalidLockTransitionError: If the subject is not locked yet
    """
    progression = subject.progression
    if not progression.locked:
        raise InvalidLockTransitionError(
            f"Build '{subject.name}' must be locked before saving a checkpoint"
        )

    progression.checkpoint = dict(subject.allocations)
    progression.xp_checkpoint = progression.xp_spent

    logger.info(
        "checkpoint_created",
        subject_id=subject.id,
        xp_checkpoint=progression.xp_checkpoint,
        keys=len(progression.checkpoint),
    )


def apply_xp_allocation(
    subject: "BuildSubject", key: AllocationKey, new_points: int
) -> AllocationResult:
    """
    Change a locked subject's allocation at one key, charging or refunding XP.

    Increases must be exactly one point. Decreases may span several points
    but never cross the key's checkpoint value.

    Raises:
        LockViolationError: On a multi-point increase or a drop below the checkpoint
        InsufficientXPError: If the purchase costs more than the remaining XP
    """
    progression = subject.progression
    current = subject.points(key)
    new_points = max(0, new_points)

    if new_points == current:
        return AllocationResult(key=key, previous=current, points=current)

    if new_points < current:
        floor = progression.floor_for(key)
        if new_points < floor:
            raise LockViolationError(
                f"Cannot reduce {key} below its checkpoint of {floor} points",
                key=key,
                attempted=new_points,
                limit=floor,
            )

        target = new_points
        refund = refund_amount(current, target)
        before = progression.xp_spent
        progression.xp_spent = max(0, before - refund)
        if target == 0:
            subject.allocations.pop(key, None)
        else:
            subject.allocations[key] = target

        logger.info(
            "xp_refunded",
            subject_id=subject.id,
            key=str(key),
            previous=current,
            points=target,
            refund=refund,
            xp_spent=progression.xp_spent,
        )
        return AllocationResult(
            key=key, previous=current, points=target, xp_delta=progression.xp_spent - before
        )

    if new_points != current + 1:
        raise LockViolationError(
            f"XP purchases raise a skill one point at a time ({current} -> {new_points})",
            key=key,
            attempted=new_points,
            limit=current + 1,
        )

    cost = purchase_cost(current)
    remaining = remaining_xp(subject)
    if remaining < cost:
        raise InsufficientXPError(
            f"Raising {key} to {new_points} costs {cost} XP, only {remaining} XP remaining",
            key=key,
            attempted=cost,
            limit=remaining,
        )

    progression.xp_spent += cost
    subject.allocations[key] = new_points

    logger.info(
        "xp_spent",
        subject_id=subject.id,
        key=str(key),
        points=new_points,
        cost=cost,
        xp_spent=progression.xp_spent,
    )
    return AllocationResult(key=key, previous=current, points=new_points, xp_delta=cost)
