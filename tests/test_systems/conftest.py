"""Shared fixtures for systems tests."""

import pytest

from serrian.game.character.subject import BuildSubject
from serrian.game.systems import experience
from serrian.game.systems.budget import BudgetConfig


@pytest.fixture
def locked_subject(full_subject: BuildSubject, budget: BudgetConfig) -> BuildSubject:
    """Fully allocated character, locked at challenge rating 3 (50 XP)."""
    full_subject.challenge_rating = 3
    experience.lock(full_subject, budget)
    return full_subject
