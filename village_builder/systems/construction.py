"""Construction logic: scaled costs, affordability gate and purchase."""

import logging
from typing import Callable, Mapping

from village_builder.models import (
    BuildingDefinition,
    BuildingType,
    ConstructionResult,
    FailureReason,
    ResourceType,
    VillageState,
)

logger = logging.getLogger(__name__)


def scaled_cost(building: BuildingDefinition, current_level: int) -> dict[ResourceType, float]:
    """Cost of raising ``building`` from ``current_level`` to the next level.

    Examples:
        woodcutter at level 0 -> wood 40
        woodcutter at level 1 -> wood 80
    """
    if current_level < 0:
        raise ValueError(f"level must be >= 0, got {current_level}")
    multiplier = current_level + 1
    return {rt: cost * multiplier for rt, cost in building.base_cost.items()}


def plan_construction(
    buildings: Mapping[BuildingType, BuildingDefinition],
    state: VillageState,
    building_type: BuildingType,
) -> ConstructionResult:
    """Decide the outcome of a construction attempt without mutating state."""
    current_level = state.level_of(building_type)
    costs = scaled_cost(buildings[building_type], current_level)

    if not state.ledger.can_afford(costs):
        return ConstructionResult(
            building_type=building_type,
            from_level=current_level,
            cost=costs,
            failure=FailureReason.INSUFFICIENT_RESOURCES,
            shortfall=state.ledger.shortfall(costs),
        )

    return ConstructionResult(
        building_type=building_type,
        from_level=current_level,
        cost=costs,
    )


class ConstructionLogic:
    """Applies construction attempts to a village state.

    The spend goes through ``apply_delta`` like every other ledger change;
    levels and population are updated here once the spend is accepted.
    """

    def __init__(
        self,
        buildings: Mapping[BuildingType, BuildingDefinition],
        state: VillageState,
        apply_delta: Callable[[dict[ResourceType, float]], None],
        population_per_build: int = 10,
    ):
        self.buildings = buildings
        self.state = state
        self.population_per_build = population_per_build
        self._apply_delta = apply_delta

    def attempt(self, building_type: BuildingType) -> ConstructionResult:
        """Try to construct one level of ``building_type``."""
        result = plan_construction(self.buildings, self.state, building_type)

        if not result.success:
            logger.debug(
                "Cannot build %s level %d, short by %s",
                building_type.value,
                result.to_level + 1,
                {rt.value: v for rt, v in result.shortfall.items()},
            )
            return result

        self._apply_delta({rt: -cost for rt, cost in result.cost.items()})
        self.state.building_levels[building_type] = result.to_level
        self.state.population += self.population_per_build

        logger.debug(
            "Built %s level %d (population %d)",
            building_type.value,
            result.to_level,
            self.state.population,
        )
        return result
