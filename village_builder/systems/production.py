"""Production ticker: periodic resource credit from built producers."""

import logging
from typing import Callable, Mapping

from village_builder.models import BuildingDefinition, BuildingType, ResourceType
from village_builder.systems.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


def production_rates(
    buildings: Mapping[BuildingType, BuildingDefinition],
    building_levels: Mapping[BuildingType, int],
) -> dict[ResourceType, float]:
    """Calculate the resources credited by one tick.

    Each built producer yields ``base_production × level``; the yields of
    all buildings are summed into a single delta. Only resource kinds with
    a non-zero yield appear in the result.
    """
    rates: dict[ResourceType, float] = {}

    for building_type, level in building_levels.items():
        if level <= 0:
            continue

        building = buildings[building_type]
        for resource_type, per_level in building.base_production.items():
            rates[resource_type] = rates.get(resource_type, 0) + per_level * level

    return rates


class ProductionTicker:
    """
    Recurring task that credits production every ``interval`` seconds.

    The ticker never touches the ledger directly. On each firing it reads
    the current levels, computes the production delta and hands it to
    ``apply_delta``, the owner's serialized mutation entry point.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        buildings: Mapping[BuildingType, BuildingDefinition],
        levels: Callable[[], Mapping[BuildingType, int]],
        apply_delta: Callable[[dict[ResourceType, float]], None],
        interval: float = 3.0,
    ):
        self.scheduler = scheduler
        self.buildings = buildings
        self.interval = interval
        self._levels = levels
        self._apply_delta = apply_delta
        self._handle: TimerHandle | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self) -> None:
        """Register the recurring task. Starting twice keeps one task."""
        if self.running:
            return
        self._handle = self.scheduler.call_every(
            self.interval, self.tick, name="production"
        )
        logger.info("Production ticker started (every %gs)", self.interval)

    def stop(self) -> bool:
        """Release the recurring task. Returns False if it was not running."""
        if self._handle is None:
            return False
        cancelled = self._handle.cancel()
        self._handle = None
        if cancelled:
            logger.info("Production ticker stopped after %d ticks", self.ticks)
        return cancelled

    def tick(self) -> dict[ResourceType, float]:
        """Credit one tick of production and return the applied delta."""
        self.ticks += 1
        delta = production_rates(self.buildings, self._levels())
        if delta:
            self._apply_delta(delta)
        logger.debug(
            "Tick %d: %s",
            self.ticks,
            ", ".join(f"+{v:g} {rt.value}" for rt, v in delta.items()) or "no production",
        )
        return delta
