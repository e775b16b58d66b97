"""Campaign point budgets.

Campaigns may override the attribute and skill point budgets and the number
of points a parent skill needs before its children unlock. Anything a
campaign leaves unset falls back to the configured defaults.
"""

from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field

from serrian.config import get_settings

if TYPE_CHECKING:
    from serrian.game.providers import BudgetConfigProvider

logger = structlog.get_logger(__name__)


class BudgetConfig(BaseModel):
    """Point budgets and thresholds for one campaign."""

    model_config = ConfigDict(frozen=True)

    attribute_points: int = Field(default=150, ge=0, description="Attribute point budget")
    skill_points: int = Field(default=50, ge=0, description="Starting skill point budget")
    points_needed_for_next_tier: int = Field(
        default=25, ge=1, description="Parent points needed to unlock the next tier"
    )


class CampaignBudget(BaseModel):
    """Budget overrides as stored on a campaign; unset fields use defaults."""

    attribute_points: int | None = None
    skill_points: int | None = None
    points_needed_for_next_tier: int | None = None


def default_budget() -> BudgetConfig:
    """Budget built from the application settings."""
    settings = get_settings()
    return BudgetConfig(
        attribute_points=settings.attribute_points,
        skill_points=settings.skill_points,
        points_needed_for_next_tier=settings.points_needed_for_next_tier,
    )


def resolve_budget(
    campaign_id: str | None,
    provider: "BudgetConfigProvider | None" = None,
) -> BudgetConfig:
    """Resolve the effective budget for a campaign.

    Args:
        campaign_id: Campaign the subject belongs to, or None for a free build
        provider: Source of campaign overrides

    Returns:
        The campaign's budget with unset values filled from defaults
    """
    defaults = default_budget()
    if campaign_id is None or provider is None:
        return defaults

    overrides = provider.get_config(campaign_id)
    if overrides is None:
        logger.debug("campaign_budget_not_found", campaign_id=campaign_id)
        return defaults

    if isinstance(overrides, BudgetConfig):
        return overrides

    return defaults.model_copy(update=overrides.model_dump(exclude_none=True))
