"""Tests for scaled_cost, plan_construction and ConstructionLogic."""
import dataclasses

import pytest

from village_builder.models import (
    BuildingType,
    FailureReason,
    ResourceLedger,
    ResourceType,
    VillageState,
)
from village_builder.systems.construction import (
    ConstructionLogic,
    plan_construction,
    scaled_cost,
)
from village_builder.utils.data_loader import get_default_buildings


@pytest.fixture
def buildings():
    return get_default_buildings()


def make_logic(buildings, amount=500.0, population=50):
    state = VillageState(
        ledger=ResourceLedger({rt: amount for rt in ResourceType}),
        population=population,
    )
    return ConstructionLogic(buildings, state, state.ledger.apply), state


class TestScaledCost:
    def test_first_level_is_base_cost(self, buildings) -> None:
        woodcutter = buildings[BuildingType.WOODCUTTER]
        assert scaled_cost(woodcutter, 0) == woodcutter.base_cost

    @pytest.mark.parametrize("level", [1, 2, 7])
    def test_multiplies_by_level_plus_one(self, buildings, level) -> None:
        wall = buildings[BuildingType.WALL]
        costs = scaled_cost(wall, level)
        for rt in ResourceType:
            assert costs[rt] == wall.base_cost[rt] * (level + 1)

    def test_negative_level_raises(self, buildings) -> None:
        with pytest.raises(ValueError):
            scaled_cost(buildings[BuildingType.WALL], -1)


class TestPlanConstruction:
    def test_plan_does_not_mutate(self, buildings) -> None:
        _, state = make_logic(buildings)
        result = plan_construction(buildings, state, BuildingType.BARRACKS)
        assert result.success
        assert state.ledger.get(ResourceType.WOOD) == 500
        assert state.level_of(BuildingType.BARRACKS) == 0


class TestConstructionLogic:
    def test_woodcutter_scenario(self, buildings) -> None:
        logic, state = make_logic(buildings)

        first = logic.attempt(BuildingType.WOODCUTTER)
        assert first.success
        assert state.ledger.get(ResourceType.WOOD) == 460
        assert state.level_of(BuildingType.WOODCUTTER) == 1
        assert state.population == 60

        second = logic.attempt(BuildingType.WOODCUTTER)
        assert second.success
        assert second.cost[ResourceType.WOOD] == 80
        assert state.ledger.get(ResourceType.WOOD) == 380
        assert state.level_of(BuildingType.WOODCUTTER) == 2
        assert state.population == 70

    def test_nth_build_costs_base_times_n(self, buildings) -> None:
        logic, _ = make_logic(buildings, amount=100_000)
        base = buildings[BuildingType.CROPLAND].base_cost
        for n in range(1, 6):
            result = logic.attempt(BuildingType.CROPLAND)
            assert result.cost == {rt: base[rt] * n for rt in ResourceType}

    def test_ledger_changes_by_exactly_minus_cost(self, buildings) -> None:
        logic, state = make_logic(buildings)
        before = state.ledger.snapshot()
        result = logic.attempt(BuildingType.MARKETPLACE)
        after = state.ledger.snapshot()
        assert {rt: after[rt] - before[rt] for rt in ResourceType} == {
            rt: -result.cost[rt] for rt in ResourceType
        }

    def test_granary_fails_when_resources_low(self, buildings) -> None:
        logic, state = make_logic(buildings, amount=10)
        result = logic.attempt(BuildingType.GRANARY)

        assert not result.success
        assert result.failure is FailureReason.INSUFFICIENT_RESOURCES
        assert result.shortfall[ResourceType.WOOD] == 50
        assert state.ledger.snapshot() == {rt: 10 for rt in ResourceType}
        assert state.level_of(BuildingType.GRANARY) == 0
        assert state.population == 50

    def test_one_short_resource_rejects_everything(self, buildings) -> None:
        logic, state = make_logic(buildings)
        state.ledger.apply({ResourceType.CROP: -495})  # crop = 5, wall needs 50
        before = state.ledger.snapshot()

        result = logic.attempt(BuildingType.WALL)

        assert not result.success
        assert set(result.shortfall) == {ResourceType.CROP}
        assert state.ledger.snapshot() == before

    def test_exact_amount_is_affordable(self, buildings) -> None:
        logic, state = make_logic(buildings, amount=0)
        state.ledger.apply(dict(buildings[BuildingType.TOWN_HALL].base_cost))
        assert logic.attempt(BuildingType.TOWN_HALL).success
        assert all(v == 0 for v in state.ledger.snapshot().values())

    def test_resources_never_negative(self, buildings) -> None:
        logic, state = make_logic(buildings)
        for _ in range(20):
            for building_type in BuildingType:
                logic.attempt(building_type)
        assert all(v >= 0 for v in state.ledger.snapshot().values())

    def test_custom_population_increment(self, buildings) -> None:
        state = VillageState(ledger=ResourceLedger({rt: 500 for rt in ResourceType}))
        logic = ConstructionLogic(
            buildings, state, state.ledger.apply, population_per_build=3
        )
        logic.attempt(BuildingType.CROPLAND)
        assert state.population == 3


class TestFractionalCosts:
    def test_fractional_base_cost_scales_without_truncation(self, buildings) -> None:
        woodcutter = buildings[BuildingType.WOODCUTTER]
        custom = dataclasses.replace(
            woodcutter, base_cost={**woodcutter.base_cost, ResourceType.WOOD: 40.5}
        )
        assert scaled_cost(custom, 1)[ResourceType.WOOD] == 81.0
