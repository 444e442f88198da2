"""Simulation configuration model."""

import math
from dataclasses import dataclass, field

from village_builder.models import ConfigError, ResourceType

LANGUAGES = ("ar", "en")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _default_resources() -> dict[ResourceType, float]:
    return {rt: 500.0 for rt in ResourceType}


@dataclass(frozen=True)
class SimulationConfig:
    """Tunable constants of a village simulation."""

    tick_interval: float = 3.0  # seconds between production ticks
    message_duration: float = 3.0  # seconds a status message stays visible
    population_per_build: int = 10
    initial_resources: dict[ResourceType, float] = field(
        default_factory=_default_resources
    )
    initial_population: int = 50
    language: str = "ar"

    def validate(self) -> "SimulationConfig":
        """Raise ConfigError if any value has the wrong type or is out of range."""
        for name in ("tick_interval", "message_duration"):
            value = getattr(self, name)
            if not _is_number(value) or not math.isfinite(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")
        for name in ("population_per_build", "initial_population"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"{name} must be an integer >= 0, got {value!r}")
        if not isinstance(self.initial_resources, dict):
            raise ConfigError("initial_resources must be a mapping")
        for resource_type, amount in self.initial_resources.items():
            if not isinstance(resource_type, ResourceType):
                raise ConfigError(f"unknown resource {resource_type!r}")
            if not _is_number(amount) or not math.isfinite(amount) or amount < 0:
                raise ConfigError(
                    f"initial {resource_type.value} must be a number >= 0, got {amount!r}"
                )
        if not isinstance(self.language, str) or self.language not in LANGUAGES:
            raise ConfigError(
                f"language must be one of {', '.join(LANGUAGES)}, got {self.language!r}"
            )
        return self
