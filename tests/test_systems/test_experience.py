"""Tests for locking, checkpoints and XP spending."""

import pytest

from serrian.game.character.skills import AllocationKey
from serrian.game.errors import (
    InsufficientXPError,
    InvalidLockTransitionError,
    LockViolationError,
    PrerequisiteNotMetError,
)
from serrian.game.systems import experience
from serrian.game.systems.experience import (
    CR_TO_XP,
    purchase_cost,
    refund_amount,
    xp_for_challenge_rating,
)

LORE = AllocationKey.of("lore")
STEALTH = AllocationKey.of("stealth")


class TestXPTable:
    """Tests for the challenge rating XP table and costs."""

    def test_table_covers_every_rating(self):
        """Ratings 1-50 all have an entry and grow monotonically."""
        assert sorted(CR_TO_XP) == list(range(1, 51))
        values = [CR_TO_XP[cr] for cr in range(1, 51)]
        assert values == sorted(values)

    def test_known_values(self):
        """Spot-check the table."""
        assert xp_for_challenge_rating(1) == 0
        assert xp_for_challenge_rating(2) == 25
        assert xp_for_challenge_rating(10) == 1020
        assert xp_for_challenge_rating(50) == 904722

    def test_outside_table(self):
        """Ratings outside the table grant nothing."""
        assert xp_for_challenge_rating(0) == 0
        assert xp_for_challenge_rating(51) == 0

    def test_purchase_cost(self):
        """New skills cost 10; later points cost the current points."""
        assert purchase_cost(0) == 10
        assert purchase_cost(1) == 1
        assert purchase_cost(5) == 5

    def test_refund_mirrors_purchases(self):
        """Refunding 0 -> 3 returns 10 + 1 + 2."""
        assert refund_amount(3, 0) == 13
        assert refund_amount(12, 10) == 21
        assert refund_amount(4, 4) == 0


class TestLock:
    """Tests for locking the starting allocation."""

    def test_lock_requires_exact_budget(self, subject, budget, graph):
        """Locking needs exactly the full skill budget spent."""
        for skill_id in ("athletics", "swordplay", "lore", "arcane"):
            graph.allocate(subject, skill_id, 10)
        graph.allocate(subject, "perception", 9)

        with pytest.raises(InvalidLockTransitionError) as exc_info:
            experience.lock(subject, budget)
        assert exc_info.value.attempted == 49
        assert not subject.locked

        graph.allocate(subject, "perception", 10)
        experience.lock(subject, budget)
        assert subject.locked

    def test_lock_rejects_overspend(self, full_subject, budget):
        """More than the budget also blocks locking."""
        full_subject.allocations[STEALTH] = 1

        with pytest.raises(InvalidLockTransitionError):
            experience.lock(full_subject, budget)

    def test_lock_sets_checkpoint(self, locked_subject):
        """Locking snapshots the allocation and zeroes the ledger."""
        progression = locked_subject.progression

        assert progression.checkpoint == locked_subject.allocations
        assert progression.checkpoint is not locked_subject.allocations
        assert progression.xp_spent == 0
        assert progression.xp_checkpoint == 0
        assert experience.remaining_xp(locked_subject) == 50

    def test_double_lock_rejected(self, locked_subject, budget):
        """A locked build cannot be locked again."""
        with pytest.raises(InvalidLockTransitionError):
            experience.lock(locked_subject, budget)

    def test_no_xp_before_lock(self, full_subject):
        """Unlocked builds have no XP to spend."""
        full_subject.challenge_rating = 10
        assert experience.available_xp(full_subject) == 0
        assert experience.remaining_xp(full_subject) == 0


class TestXPAllocation:
    """Tests for buying and refunding points after locking."""

    def test_buy_into_new_skill(self, graph, locked_subject):
        """The first point in a skill costs 10 XP."""
        result = graph.allocate(locked_subject, "stealth", 1)

        assert result.xp_delta == 10
        assert locked_subject.progression.xp_spent == 10
        assert experience.remaining_xp(locked_subject) == 40

    def test_raise_existing_skill(self, graph, locked_subject):
        """Raising 10 -> 11 costs 10; 11 -> 12 costs 11."""
        graph.allocate(locked_subject, "lore", 11)
        graph.allocate(locked_subject, "lore", 12)

        assert locked_subject.points(LORE) == 12
        assert locked_subject.progression.xp_spent == 21

    def test_no_per_skill_cap_after_lock(self, graph, locked_subject):
        """The 10-point starting cap does not apply to XP purchases."""
        assert graph.allocate(locked_subject, "lore", 11).points == 11

    def test_one_point_at_a_time(self, graph, locked_subject):
        """Multi-point increases are rejected."""
        with pytest.raises(LockViolationError):
            graph.allocate(locked_subject, "lore", 12)
        assert locked_subject.points(LORE) == 10
        assert locked_subject.progression.xp_spent == 0

    def test_round_trip_refund(self, graph, locked_subject):
        """Buying 0 -> 3 then refunding to 0 restores the ledger."""
        for points in (1, 2, 3):
            graph.allocate(locked_subject, "stealth", points)
        assert locked_subject.progression.xp_spent == 13

        result = graph.allocate(locked_subject, "stealth", 0)

        assert result.xp_delta == -13
        assert locked_subject.progression.xp_spent == 0
        assert STEALTH not in locked_subject.allocations

    def test_cannot_drop_below_checkpoint(self, graph, locked_subject):
        """Keys never go under their locked-in value."""
        with pytest.raises(LockViolationError) as exc_info:
            graph.allocate(locked_subject, "lore", 9)

        assert exc_info.value.limit == 10
        assert locked_subject.points(LORE) == 10

    def test_insufficient_xp(self, graph, full_subject, budget):
        """Purchases beyond the remaining XP are rejected."""
        full_subject.challenge_rating = 1
        experience.lock(full_subject, budget)

        with pytest.raises(InsufficientXPError) as exc_info:
            graph.allocate(full_subject, "stealth", 1)

        assert exc_info.value.attempted == 10
        assert exc_info.value.limit == 0
        assert STEALTH not in full_subject.allocations

    def test_exact_xp_spend(self, graph, full_subject, budget):
        """XP can be spent down to exactly zero."""
        full_subject.challenge_rating = 2
        experience.lock(full_subject, budget)

        # 10 + 1 + 2 + 3 + 4 + 5 = 25
        for points in range(1, 7):
            graph.allocate(full_subject, "stealth", points)

        assert experience.remaining_xp(full_subject) == 0
        with pytest.raises(InsufficientXPError):
            graph.allocate(full_subject, "stealth", 7)

    def test_prerequisite_still_applies(self, graph, locked_subject):
        """Locked builds still need unlocked lineages."""
        with pytest.raises(PrerequisiteNotMetError):
            graph.allocate(locked_subject, "fire", 1, ("divine",))

    def test_unchanged_value_is_noop(self, graph, locked_subject):
        """Setting the current value charges nothing."""
        result = graph.allocate(locked_subject, "lore", 10)

        assert result.xp_delta == 0
        assert locked_subject.progression.xp_spent == 0

    def test_skill_points_remaining_zero_when_locked(self, graph, locked_subject):
        """The starting pool reads as empty once locked."""
        assert graph.skill_points_remaining(locked_subject) == 0


class TestCheckpoint:
    """Tests for saving new checkpoints."""

    def test_checkpoint_requires_lock(self, full_subject):
        """Checkpoints are only possible after locking."""
        with pytest.raises(InvalidLockTransitionError):
            experience.create_checkpoint(full_subject)

    def test_checkpoint_raises_floor(self, graph, locked_subject):
        """After a checkpoint, new purchases cannot be refunded."""
        graph.allocate(locked_subject, "stealth", 1)
        graph.allocate(locked_subject, "stealth", 2)
        assert experience.has_uncheckpointed_changes(locked_subject)

        experience.create_checkpoint(locked_subject)

        assert locked_subject.progression.xp_checkpoint == 11
        assert not experience.has_uncheckpointed_changes(locked_subject)
        with pytest.raises(LockViolationError):
            graph.allocate(locked_subject, "stealth", 1)

    def test_refund_above_checkpoint(self, graph, locked_subject):
        """Points bought after the checkpoint can still be refunded."""
        graph.allocate(locked_subject, "lore", 11)
        experience.create_checkpoint(locked_subject)
        graph.allocate(locked_subject, "lore", 12)

        result = graph.allocate(locked_subject, "lore", 11)

        assert result.xp_delta == -11
        assert locked_subject.progression.xp_spent == 10
