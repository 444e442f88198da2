"""Data models for village builder game entities."""

import math
from dataclasses import dataclass, field
from enum import Enum


class ResourceType(Enum):
    """Types of resources in the game."""

    WOOD = "wood"
    CLAY = "clay"
    IRON = "iron"
    CROP = "crop"


class BuildingType(Enum):
    """Types of buildings in the game."""

    # Core buildings
    TOWN_HALL = "townHall"
    BARRACKS = "barracks"

    # Storage (cosmetic, no capacity effect)
    WAREHOUSE = "warehouse"
    GRANARY = "granary"

    # Resource production
    WOODCUTTER = "woodcutter"
    CLAY_PIT = "clayPit"
    IRON_MINE = "ironMine"
    CROPLAND = "cropland"

    # Military / trade
    WALL = "wall"
    MARKETPLACE = "marketplace"


class FailureReason(Enum):
    """Why a construction attempt was rejected."""

    INSUFFICIENT_RESOURCES = "insufficient_resources"


class VillageError(Exception):
    """Base class for village builder errors."""


class CatalogError(VillageError, ValueError):
    """Raised when a building catalog file is malformed."""


class ConfigError(VillageError, ValueError):
    """Raised when a simulation configuration is invalid."""


class UnknownBuildingError(VillageError, KeyError):
    """Raised when a building identifier is not part of the catalog."""

    def __init__(self, building_id: str) -> None:
        self.building_id = building_id
        super().__init__(f"Unknown building: {building_id!r}")

    def __str__(self) -> str:
        return self.args[0]


def parse_building_type(building_id: str) -> BuildingType:
    """Map a catalog identifier (or enum name) to a BuildingType."""
    try:
        return BuildingType(building_id)
    except ValueError:
        pass
    try:
        return BuildingType[building_id.upper()]
    except KeyError:
        raise UnknownBuildingError(building_id) from None


@dataclass(frozen=True)
class BuildingDefinition:
    """Static catalog entry for one building kind."""

    building_type: BuildingType
    name: str  # Arabic display name
    name_en: str
    icon: str
    base_cost: dict[ResourceType, float]
    base_production: dict[ResourceType, float] = field(default_factory=dict)

    @property
    def produces(self) -> bool:
        return bool(self.base_production)

    def display_name(self, language: str = "ar") -> str:
        return self.name_en if language == "en" else self.name


class ResourceLedger:
    """Current quantity of every resource kind.

    The ledger never checks bounds itself: callers validate a spend with
    :meth:`can_afford` before applying the negative delta.
    """

    def __init__(self, initial: dict[ResourceType, float] | None = None) -> None:
        self._amounts: dict[ResourceType, float] = {rt: 0.0 for rt in ResourceType}
        if initial:
            for resource_type, amount in initial.items():
                self._amounts[resource_type] = float(amount)

    def get(self, resource_type: ResourceType) -> float:
        return self._amounts[resource_type]

    def apply(self, delta: dict[ResourceType, float]) -> None:
        """Add each signed amount in ``delta`` to the matching quantity."""
        for resource_type, amount in delta.items():
            self._amounts[resource_type] += amount

    def can_afford(self, costs: dict[ResourceType, float]) -> bool:
        """Check if every cost is covered at once."""
        return all(
            self._amounts.get(resource_type, 0) >= cost
            for resource_type, cost in costs.items()
        )

    def shortfall(self, costs: dict[ResourceType, float]) -> dict[ResourceType, float]:
        """Amount still missing per resource kind (only kinds that fall short)."""
        return {
            resource_type: cost - self._amounts.get(resource_type, 0)
            for resource_type, cost in costs.items()
            if self._amounts.get(resource_type, 0) < cost
        }

    def snapshot(self) -> dict[ResourceType, float]:
        return dict(self._amounts)

    def floored(self) -> dict[ResourceType, int]:
        """Quantities as shown to the player."""
        return {rt: math.floor(amount) for rt, amount in self._amounts.items()}

    def __repr__(self) -> str:
        amounts = ", ".join(f"{rt.value}={v:g}" for rt, v in self._amounts.items())
        return f"ResourceLedger({amounts})"


@dataclass
class VillageState:
    """Mutable state of a single village."""

    ledger: ResourceLedger
    building_levels: dict[BuildingType, int] = field(default_factory=dict)
    population: int = 0
    message: str = ""

    def level_of(self, building_type: BuildingType) -> int:
        return self.building_levels.get(building_type, 0)


@dataclass(frozen=True)
class ConstructionResult:
    """Outcome of one construction attempt."""

    building_type: BuildingType
    from_level: int
    cost: dict[ResourceType, float]
    failure: FailureReason | None = None
    shortfall: dict[ResourceType, float] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.failure is None

    @property
    def to_level(self) -> int:
        return self.from_level + 1 if self.success else self.from_level

    def __str__(self) -> str:
        """Human-readable representation."""
        building_name = self.building_type.value
        if self.success:
            return f"{building_name} {self.from_level}→{self.to_level}"
        return f"{building_name} {self.from_level} (rejected: {self.failure.value})"


@dataclass(frozen=True)
class BuildingCard:
    """Everything the presentation layer shows for one building."""

    definition: BuildingDefinition
    level: int
    next_cost: dict[ResourceType, float]
    production_per_level: dict[ResourceType, float]
    next_level_production: dict[ResourceType, float]
    affordable: bool


@dataclass(frozen=True)
class VillageView:
    """Read-only snapshot handed to the presentation layer."""

    time_elapsed: float
    resources: dict[ResourceType, int]
    population: int
    message: str
    production_rates: dict[ResourceType, float]
    cards: list[BuildingCard]
