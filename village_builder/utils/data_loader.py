"""Data loaders for the building catalog and simulation configuration."""

import json
import logging
import math
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from village_builder.models import (
    BuildingDefinition,
    BuildingType,
    CatalogError,
    ConfigError,
    ResourceType,
)
from village_builder.models.config import SimulationConfig

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "buildings.json"

Catalog = Mapping[BuildingType, BuildingDefinition]


def parse_resource_map(raw: Any, context: str) -> dict[ResourceType, float]:
    """
    Parse a ``{"wood": 40, "clay": 60, ...}`` mapping.

    Raises ValueError for unknown resource names or non-numeric amounts.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"{context}: expected an object, got {type(raw).__name__}")

    result: dict[ResourceType, float] = {}
    for resource_name, amount in raw.items():
        try:
            resource_type = ResourceType(resource_name)
        except ValueError:
            raise ValueError(f"{context}: unknown resource '{resource_name}'") from None
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ValueError(f"{context}: {resource_name} must be a number")
        if not math.isfinite(amount) or amount < 0:
            raise ValueError(f"{context}: {resource_name} must be >= 0, got {amount}")
        result[resource_type] = amount
    return result


def parse_building_entry(building_type: BuildingType, data: Any) -> BuildingDefinition:
    """Build a BuildingDefinition from one catalog entry."""
    context = f"building '{building_type.value}'"
    if not isinstance(data, dict):
        raise CatalogError(f"{context}: expected an object")

    try:
        raw_cost = parse_resource_map(data["cost"], f"{context} cost")
        production = parse_resource_map(
            data.get("production", {}), f"{context} production"
        )
        name = data["name"]
    except KeyError as e:
        raise CatalogError(f"{context}: missing field {e.args[0]!r}") from None
    except ValueError as e:
        raise CatalogError(str(e)) from None

    # Every building costs all four resources; missing kinds cost nothing
    costs = {rt: raw_cost.get(rt, 0) for rt in ResourceType}

    return BuildingDefinition(
        building_type=building_type,
        name=name,
        name_en=data.get("name_en", name),
        icon=data.get("icon", ""),
        base_cost=costs,
        base_production={rt: v for rt, v in production.items() if v},
    )


def load_buildings_from_json(json_path: Path | None = None) -> Catalog:
    """Load building catalog from JSON file."""
    if json_path is None:
        json_path = DEFAULT_CATALOG_PATH

    try:
        with open(json_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogError(f"{json_path}: invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise CatalogError(f"{json_path}: top level must be an object")

    buildings: dict[BuildingType, BuildingDefinition] = {}

    for building_name, building_data in data.items():
        # Map building name to BuildingType enum
        try:
            building_type = BuildingType(building_name)
        except ValueError:
            logger.warning("Unknown building type '%s', skipping", building_name)
            continue

        buildings[building_type] = parse_building_entry(building_type, building_data)

    missing = [bt.value for bt in BuildingType if bt not in buildings]
    if missing:
        raise CatalogError(f"{json_path}: missing buildings {', '.join(missing)}")

    # Keep enum order regardless of file order
    ordered = {bt: buildings[bt] for bt in BuildingType}
    logger.debug("Loaded %d buildings from %s", len(ordered), json_path)
    return MappingProxyType(ordered)


def get_default_buildings() -> Catalog:
    """Get default building data from the packaged JSON file."""
    return load_buildings_from_json()


def load_config(json_path: Path | None = None, **overrides: Any) -> SimulationConfig:
    """
    Load simulation configuration from a JSON file.

    Keys missing from the file keep their defaults. Keyword overrides
    whose value is None are ignored, so CLI flags can be passed through
    unconditionally.

    Example file:
        {"tick_interval": 3, "initial_resources": {"wood": 800}}
    """
    values: dict[str, Any] = {}

    if json_path is not None:
        try:
            with open(json_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{json_path}: invalid JSON ({e})") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{json_path}: top level must be an object")
        values.update(data)

    values.update({k: v for k, v in overrides.items() if v is not None})

    known = set(SimulationConfig.__dataclass_fields__)
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    if "initial_resources" in values:
        raw = values["initial_resources"]
        if isinstance(raw, dict) and all(isinstance(k, ResourceType) for k in raw):
            parsed = dict(raw)
        else:
            try:
                parsed = parse_resource_map(raw, "initial_resources")
            except ValueError as e:
                raise ConfigError(str(e)) from None
        resources = {rt: 500.0 for rt in ResourceType}
        resources.update(parsed)
        values["initial_resources"] = resources

    return SimulationConfig(**values).validate()
