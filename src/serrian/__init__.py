"""Serrian build engine: attribute and skill allocation for characters and NPCs."""

__version__ = "0.1.0"
