"""
Race module for the Serrian build engine.

Races supply a subject's base magic and movement and may cap individual
attributes.
"""

from pydantic import BaseModel, Field, field_validator

from serrian.game.character.attributes import AttributeName

DEFAULT_BASE_MOVEMENT = 5


class Race(BaseModel):
    """
    A playable race.

    Attributes:
        id: Unique identifier for the race (e.g., "human")
        name: Display name (e.g., "Human")
        base_magic: Mana multiplier applied to magic stabilization rank
        base_movement: Movement multiplier applied to base initiative
        max_attributes: Per-attribute ceilings; missing attributes are uncapped
    """

    id: str = Field(..., description="Unique race identifier")
    name: str = Field(..., description="Display name of the race")
    base_magic: int = Field(default=0, ge=0, description="Mana per magic stabilization rank")
    base_movement: int = Field(
        default=DEFAULT_BASE_MOVEMENT, ge=0, description="Initiative movement multiplier"
    )
    max_attributes: dict[AttributeName, int] = Field(
        default_factory=dict, description="Maps attribute code to its maximum score"
    )

    @field_validator("max_attributes", mode="before")
    @classmethod
    def _parse_attribute_keys(cls, value: object) -> object:
        if isinstance(value, dict):
            return {AttributeName.parse(k): v for k, v in value.items() if v is not None}
        return value

    def max_for(self, attr: AttributeName) -> int | None:
        """
        Get the ceiling for an attribute.

        Args:
            attr: The attribute to check

        Returns:
            The maximum score, or None if the race does not cap it
        """
        return self.max_attributes.get(attr)
