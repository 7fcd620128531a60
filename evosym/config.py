"""
Configuration

Plain dataclasses holding every tunable threshold of the engine. The
defaults reproduce the reference behaviour; override individual fields
with create_config() or from_dict().
"""

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Type, TypeVar


T = TypeVar('T')


class _DictMixin:
    """to_dict/from_dict for flat config dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls: Type[T], d: Dict[str, Any]) -> T:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


@dataclass
class CreatureConfig(_DictMixin):
    """Thresholds and constants of the per-tick creature pipeline."""

    # =========================================================================
    # ACTION THRESHOLDS (brain outputs)
    # =========================================================================
    eat_threshold: float = 0.5
    attack_threshold: float = 0.7
    reproduce_threshold: float = 0.3

    # =========================================================================
    # REPRODUCTION
    # =========================================================================
    min_reproduction_energy: float = 30.0
    reproduction_cooldown: int = 100
    species_distance_threshold: float = 1.2
    species_generation_window: int = 2
    max_mate_candidates: int = 5
    offspring_jitter: float = 30.0
    offspring_mutation_rate: float = 0.1
    offspring_mutation_strength: float = 0.1

    # =========================================================================
    # ENERGY AND MOVEMENT
    # =========================================================================
    max_energy: float = 100.0
    max_health: float = 100.0
    movement_energy_cost: float = 0.003
    energy_decay_rate: float = 0.0027
    critical_energy: float = 10.0
    drag: float = 0.95
    speed_multiplier: float = 3.0
    radius_multiplier: float = 10.0

    # =========================================================================
    # SENSING
    # =========================================================================
    sensing_radius_multiplier: float = 100.0
    vision_ray_multiplier: float = 50.0
    vision_samples: int = 10
    vision_obstacle_radius: float = 20.0
    vision_interval: int = 10
    sensor_cache_enabled: bool = True
    sensor_cache_max_age: int = 5
    sensor_cache_max_distance: float = 5.0
    density_per_creature: float = 0.1
    threat_threshold: float = 0.3

    # =========================================================================
    # INTERACTION REACH (added to collision radius)
    # =========================================================================
    feeding_reach: float = 100.0
    attack_reach: float = 30.0
    mating_reach: float = 60.0
    plant_feeding_power: float = 0.8
    carrion_feeding_power: float = 0.9

    # =========================================================================
    # WORLD FALLBACKS (used when no environment is supplied)
    # =========================================================================
    world_size: float = 1000.0
    spawn_margin: float = 50.0
    boundary_margin: float = 10.0


@dataclass
class WorldConfig(_DictMixin):
    """Reference world layout, resources and population pressure."""

    # =========================================================================
    # BOUNDS
    # =========================================================================
    width: float = 1000.0
    height: float = 1000.0
    shape: str = "circular"
    center_x: float = 500.0
    center_y: float = 500.0
    radius: float = 500.0

    # =========================================================================
    # RESOURCES
    # =========================================================================
    food_spawn_rate: float = 0.5
    prey_spawn_rate: float = 0.1
    plant_density: float = 0.8
    prey_density: float = 0.4
    max_food: int = 500
    plant_energy: float = 5.0
    plant_size: float = 3.0
    prey_energy: float = 15.0
    prey_size: float = 5.0
    prey_speed: float = 1.0
    feeding_range_bonus: float = 50.0
    obstacle_count: int = 0
    obstacle_size: float = 15.0

    # =========================================================================
    # CARRION
    # =========================================================================
    carrion_min_decay: int = 200
    carrion_max_decay: int = 500
    carrion_default_energy: float = 20.0
    carrion_size: float = 8.0

    # =========================================================================
    # CARRYING CAPACITY
    # =========================================================================
    target_population: int = 300
    max_population: int = 400
    density_stress_factor: float = 0.0001
    overpopulation_mortality: float = 0.005
    resource_scaling_factor: float = 0.85

    # =========================================================================
    # SPATIAL INDEX
    # =========================================================================
    quadtree_capacity: int = 8
    index_slack: float = 25.0


@dataclass
class SimulationConfig(_DictMixin):
    """Tick driver settings."""
    initial_population: int = 50
    emergency_threshold: int = 5
    emergency_population: int = 20
    seed: Any = None
    trace_decisions: bool = False
    trace_history: int = 100
    species_update_interval: int = 50
    species_threshold: float = 0.3


def create_config(config_cls: Type[T] = CreatureConfig, **overrides) -> T:
    """
    Create a config with selected fields overridden.

    Args:
        config_cls: CreatureConfig, WorldConfig or SimulationConfig
        **overrides: Field values to replace

    Returns:
        Config instance
    """
    return replace(config_cls(), **overrides)
