"""
Catalog loader module for the Serrian build engine.

Handles loading and validating skill and race definitions from YAML files.
"""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from serrian.game.character.skills import CatalogValidationError, Skill, SkillCatalog

from .race import Race

logger = structlog.get_logger(__name__)


class CatalogLoadError(Exception):
    """Raised when there's an error loading catalog data."""

    pass


def load_yaml_file(file_path: Path, section: str) -> list[dict[str, Any]]:
    """
    Load a YAML file containing a list of catalog records.

    Args:
        file_path: Path to the YAML file
        section: Top-level key holding the records (e.g. "skills")

    Returns:
        List of record dictionaries

    Raises:
        CatalogLoadError: If the file cannot be loaded or parsed
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise CatalogLoadError(f"File not found: {file_path}") from e
    except yaml.YAMLError as e:
        raise CatalogLoadError(f"YAML parsing error in {file_path}: {e}") from e

    if not data:
        raise CatalogLoadError(f"Empty YAML file: {file_path}")

    if section not in data:
        raise CatalogLoadError(f"Missing '{section}' key in {file_path}")

    records = data[section]
    if not isinstance(records, list):
        raise CatalogLoadError(f"'{section}' must be a list in {file_path}")

    return records


def create_skill_from_data(skill_data: dict[str, Any]) -> Skill:
    """
    Create a Skill instance from dictionary data.

    Raises:
        CatalogValidationError: If Pydantic validation fails
    """
    try:
        return Skill(**skill_data)
    except ValidationError as e:
        raise CatalogValidationError(
            f"Failed to create skill '{skill_data.get('id', 'unknown')}': {e}"
        ) from e


def create_race_from_data(race_data: dict[str, Any]) -> Race:
    """
    Create a Race instance from dictionary data.

    Raises:
        CatalogValidationError: If Pydantic validation fails
    """
    try:
        return Race(**race_data)
    except ValidationError as e:
        raise CatalogValidationError(
            f"Failed to create race '{race_data.get('id', 'unknown')}': {e}"
        ) from e


def load_skill_catalog(file_path: Path) -> SkillCatalog:
    """
    Load and validate a skill catalog.

    The catalog is checked for duplicate ids, missing parents and parent
    cycles before it is returned.

    Args:
        file_path: Path to skills.yaml

    Returns:
        The validated SkillCatalog

    Raises:
        CatalogLoadError: If the file can't be loaded
        CatalogValidationError: If a skill or the graph as a whole is invalid
    """
    skills = [create_skill_from_data(record) for record in load_yaml_file(file_path, "skills")]
    catalog = SkillCatalog(skills)

    logger.info("skill_catalog_loaded", path=str(file_path), count=len(catalog))
    return catalog


def load_races(file_path: Path) -> dict[str, Race]:
    """
    Load race definitions.

    Args:
        file_path: Path to races.yaml

    Returns:
        Dictionary mapping race id to Race

    Raises:
        CatalogLoadError: If the file can't be loaded
        CatalogValidationError: On invalid or duplicate races
    """
    races: dict[str, Race] = {}
    for record in load_yaml_file(file_path, "races"):
        race = create_race_from_data(record)
        if race.id in races:
            raise CatalogValidationError(f"Duplicate race id '{race.id}' in {file_path}")
        races[race.id] = race

    logger.info("races_loaded", path=str(file_path), count=len(races))
    return races
