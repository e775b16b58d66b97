"""Character-related build rules."""

from .attributes import (
    ATTRIBUTE_NAMES,
    AttributeName,
    attribute_percent,
    get_modifier,
    set_attribute,
    set_attribute_strict,
)

__all__ = [
    "ATTRIBUTE_NAMES",
    "AttributeName",
    "attribute_percent",
    "get_modifier",
    "set_attribute",
    "set_attribute_strict",
]
