"""Village controller: owns the state, the timers and the mutation entry point."""

import logging
from dataclasses import dataclass

from village_builder.models import (
    BuildingCard,
    BuildingType,
    ConstructionResult,
    ResourceLedger,
    ResourceType,
    VillageState,
    VillageView,
    parse_building_type,
)
from village_builder.models.config import SimulationConfig
from village_builder.systems.construction import ConstructionLogic, scaled_cost
from village_builder.systems.production import ProductionTicker, production_rates
from village_builder.systems.scheduler import Scheduler, TimerHandle
from village_builder.utils.data_loader import Catalog, get_default_buildings

logger = logging.getLogger(__name__)

MESSAGES = {
    "ar": {
        "built": "تم بناء {name} بنجاح! 🎉",
        "insufficient": "موارد غير كافية! ❌",
    },
    "en": {
        "built": "{name} built successfully! 🎉",
        "insufficient": "Not enough resources! ❌",
    },
}


@dataclass(frozen=True)
class LogEntry:
    """One construction attempt, stamped with the simulated time."""

    time: float
    result: ConstructionResult


class VillageController:
    """
    Single owner of a village simulation.

    Every ledger change, whether a production credit or a construction
    spend, is a delta passed through :meth:`_apply`. Timers live on one
    :class:`Scheduler`; :meth:`start` registers the production ticker and
    :meth:`stop` releases every timer the controller holds.
    """

    def __init__(
        self,
        buildings: Catalog | None = None,
        config: SimulationConfig | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.buildings = buildings if buildings is not None else get_default_buildings()
        self.config = (config or SimulationConfig()).validate()
        self.scheduler = scheduler or Scheduler()

        self.state = VillageState(
            ledger=ResourceLedger(self.config.initial_resources),
            population=self.config.initial_population,
        )
        self.history: list[LogEntry] = []

        self.ticker = ProductionTicker(
            scheduler=self.scheduler,
            buildings=self.buildings,
            levels=lambda: self.state.building_levels,
            apply_delta=self._apply,
            interval=self.config.tick_interval,
        )
        self.construction = ConstructionLogic(
            buildings=self.buildings,
            state=self.state,
            apply_delta=self._apply,
            population_per_build=self.config.population_per_build,
        )
        self._message_timer: TimerHandle | None = None

    # --- Lifecycle ---

    @property
    def running(self) -> bool:
        return self.ticker.running

    def start(self) -> None:
        """Begin producing resources on the configured tick."""
        self.ticker.start()

    def stop(self) -> None:
        """Release all timers. Safe to call more than once."""
        self.ticker.stop()
        if self._message_timer is not None:
            self._message_timer.cancel()
            self._message_timer = None

    def __enter__(self) -> "VillageController":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # --- Time ---

    @property
    def now(self) -> float:
        return self.scheduler.now

    def advance(self, seconds: float) -> int:
        """Advance simulated time; returns the number of timers fired."""
        return self.scheduler.advance(seconds)

    # --- Mutation ---

    def _apply(self, delta: dict[ResourceType, float]) -> None:
        """The single entry point through which the ledger changes."""
        self.state.ledger.apply(delta)

    def construct(self, building: BuildingType | str) -> ConstructionResult:
        """Attempt to construct one level of a building.

        Never raises for unaffordable buildings: the outcome is reported
        in the returned result and in the status message.
        """
        building_type = (
            building if isinstance(building, BuildingType) else parse_building_type(building)
        )
        result = self.construction.attempt(building_type)
        self.history.append(LogEntry(time=self.now, result=result))

        texts = MESSAGES[self.config.language]
        if result.success:
            name = self.buildings[building_type].display_name(self.config.language)
            self._show_message(texts["built"].format(name=name))
        else:
            self._show_message(texts["insufficient"])
        return result

    def _show_message(self, text: str) -> None:
        # A newer message supersedes the old one and its dismissal timer
        if self._message_timer is not None:
            self._message_timer.cancel()
        self.state.message = text
        self._message_timer = self.scheduler.call_later(
            self.config.message_duration, self._clear_message, name="message"
        )

    def _clear_message(self) -> None:
        self.state.message = ""
        self._message_timer = None

    # --- Queries ---

    def level(self, building_type: BuildingType) -> int:
        return self.state.level_of(building_type)

    def next_cost(self, building_type: BuildingType) -> dict[ResourceType, float]:
        return scaled_cost(self.buildings[building_type], self.level(building_type))

    def card(self, building_type: BuildingType) -> BuildingCard:
        definition = self.buildings[building_type]
        level = self.level(building_type)
        costs = self.next_cost(building_type)
        return BuildingCard(
            definition=definition,
            level=level,
            next_cost=costs,
            production_per_level=dict(definition.base_production),
            next_level_production={
                rt: v * (level + 1) for rt, v in definition.base_production.items()
            },
            affordable=self.state.ledger.can_afford(costs),
        )

    def view(self) -> VillageView:
        """Read-only snapshot for the presentation layer."""
        return VillageView(
            time_elapsed=self.now,
            resources=self.state.ledger.floored(),
            population=self.state.population,
            message=self.state.message,
            production_rates=production_rates(
                self.buildings, self.state.building_levels
            ),
            cards=[self.card(bt) for bt in self.buildings],
        )
