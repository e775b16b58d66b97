"""Tests for campaign budget resolution."""

import pytest
from pydantic import ValidationError

from serrian.config import get_settings
from serrian.game.providers import StaticBudgetConfigProvider
from serrian.game.systems.budget import (
    BudgetConfig,
    CampaignBudget,
    default_budget,
    resolve_budget,
)


class TestBudgetConfig:
    """Tests for the budget model."""

    def test_defaults(self):
        """Defaults are 150 attribute points, 50 skill points, 25 to unlock."""
        config = BudgetConfig()

        assert config.attribute_points == 150
        assert config.skill_points == 50
        assert config.points_needed_for_next_tier == 25

    def test_threshold_must_be_positive(self):
        """A zero unlock threshold is rejected."""
        with pytest.raises(ValidationError):
            BudgetConfig(points_needed_for_next_tier=0)

    def test_frozen(self):
        """Budgets are immutable."""
        with pytest.raises(ValidationError):
            BudgetConfig().skill_points = 60


class TestResolveBudget:
    """Tests for falling back to defaults."""

    def test_no_campaign(self):
        """Free builds use the defaults."""
        assert resolve_budget(None) == default_budget()

    def test_unknown_campaign(self):
        """Campaigns without overrides use the defaults."""
        provider = StaticBudgetConfigProvider({})
        assert resolve_budget("c1", provider) == default_budget()

    def test_full_override(self):
        """A full BudgetConfig replaces the defaults."""
        custom = BudgetConfig(attribute_points=120, skill_points=40, points_needed_for_next_tier=20)
        provider = StaticBudgetConfigProvider({"c1": custom})

        assert resolve_budget("c1", provider) == custom

    def test_partial_override(self):
        """Unset campaign fields fall back to the defaults."""
        provider = StaticBudgetConfigProvider({"c1": CampaignBudget(skill_points=60)})

        config = resolve_budget("c1", provider)

        assert config.skill_points == 60
        assert config.attribute_points == 150
        assert config.points_needed_for_next_tier == 25

    def test_defaults_from_settings(self, monkeypatch):
        """Default budgets come from the environment."""
        monkeypatch.setenv("SKILL_POINTS", "70")
        get_settings.cache_clear()
        try:
            assert default_budget().skill_points == 70
        finally:
            monkeypatch.delenv("SKILL_POINTS")
            get_settings.cache_clear()
