"""Budget, XP economy, derived stats and NPC generation."""
