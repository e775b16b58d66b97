"""Races and catalog loading."""
