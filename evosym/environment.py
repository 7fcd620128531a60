"""
Environment Contract

Types shared between creatures and whatever world they live in, plus the
Environment protocol a world must satisfy. The environment owns spatial
storage and resolves feeding and combat; creatures only hold a reference
to it for the duration of their update.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from .creature import Creature


# =============================================================================
# GEOMETRY
# =============================================================================

@dataclass
class Vector2:
    x: float = 0.0
    y: float = 0.0

    def distance_to(self, other: 'Vector2') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def copy(self) -> 'Vector2':
        return Vector2(self.x, self.y)

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, d: dict) -> 'Vector2':
        return cls(float(d['x']), float(d['y']))


class BoundaryShape(Enum):
    CIRCULAR = "circular"
    RECTANGULAR = "rectangular"


@dataclass
class WorldBounds:
    """Playable area of a world."""
    width: float = 1000.0
    height: float = 1000.0
    shape: BoundaryShape = BoundaryShape.CIRCULAR
    center_x: float = 500.0
    center_y: float = 500.0
    radius: float = 500.0

    @property
    def is_circular(self) -> bool:
        return self.shape is BoundaryShape.CIRCULAR

    def contains(self, position: Vector2, margin: float = 0.0) -> bool:
        if self.is_circular:
            dist = math.hypot(position.x - self.center_x, position.y - self.center_y)
            return dist <= self.radius - margin
        return (margin <= position.x <= self.width - margin and
                margin <= position.y <= self.height - margin)

    def clamp(self, position: Vector2, margin: float = 0.0) -> Vector2:
        """Nearest point inside the bounds (shrunk by `margin`)."""
        if self.is_circular:
            dx = position.x - self.center_x
            dy = position.y - self.center_y
            dist = math.hypot(dx, dy)
            limit = max(self.radius - margin, 0.0)
            if dist <= limit:
                return position.copy()
            scale = limit / dist
            return Vector2(self.center_x + dx * scale, self.center_y + dy * scale)
        return Vector2(min(max(position.x, margin), self.width - margin),
                       min(max(position.y, margin), self.height - margin))


# =============================================================================
# ENTITIES
# =============================================================================

class EntityType(Enum):
    # Food
    PLANT_FOOD = "plant_food"
    MUSHROOM_FOOD = "mushroom_food"
    SMALL_PREY = "small_prey"
    CARRION = "carrion"

    # Features
    OBSTACLE = "obstacle"
    WATER_SOURCE = "water_source"
    SHELTER = "shelter"

    CREATURE = "creature"


FOOD_TYPES = (EntityType.PLANT_FOOD, EntityType.MUSHROOM_FOOD,
              EntityType.SMALL_PREY, EntityType.CARRION)
ENVIRONMENTAL_TYPES = (EntityType.OBSTACLE, EntityType.WATER_SOURCE, EntityType.SHELTER)


@dataclass
class Entity:
    id: str
    position: Vector2
    entity_type: EntityType
    size: float = 5.0
    is_active: bool = True


@dataclass
class FoodEntity(Entity):
    """Something edible; prey also moves."""
    energy: float = 5.0
    velocity: Vector2 = field(default_factory=Vector2)
    max_speed: float = 0.0

    @property
    def is_plant(self) -> bool:
        return self.entity_type is EntityType.PLANT_FOOD


@dataclass
class Carrion(FoodEntity):
    """Decaying remains of a dead creature."""
    original_creature_id: str = ""
    original_energy: float = 0.0
    created_at: int = 0
    decay_time: int = 300
    decay_stage: float = 0.0      # 0 fresh -> 1 gone
    scent: float = 1.0            # Detection multiplier on sensing radius

    @property
    def subtype(self) -> str:
        if self.decay_stage < 0.3:
            return "fresh"
        if self.decay_stage < 0.7:
            return "aged"
        return "rotting"


# =============================================================================
# QUERIES AND RESULTS
# =============================================================================

@dataclass
class SpatialQuery:
    position: Vector2
    radius: float
    entity_types: Optional[Sequence[EntityType]] = None
    max_results: Optional[int] = None
    sort_by_distance: bool = False
    exclude_creature: Optional['Creature'] = None


@dataclass
class EntityQuery:
    food: List[FoodEntity] = field(default_factory=list)
    creatures: List['Creature'] = field(default_factory=list)
    environmental: List[Entity] = field(default_factory=list)


@dataclass
class FeedingResult:
    success: bool
    energy_gain: float = 0.0
    food_consumed: bool = False


@dataclass
class CombatResult:
    success: bool
    damage: float = 0.0
    energy_loss: float = 0.0
    energy_gain: Optional[float] = None


# =============================================================================
# ENVIRONMENT PROTOCOL
# =============================================================================

@runtime_checkable
class Environment(Protocol):
    """
    What a creature needs from the world around it.

    Implementations apply physical effects themselves (energy and health
    changes, removing eaten food) and report them through the results.
    """

    bounds: WorldBounds

    def query_nearby_entities(self, query: SpatialQuery) -> EntityQuery:
        ...

    def process_feeding(self, creature: 'Creature', food: FoodEntity, power: float) -> FeedingResult:
        ...

    def process_combat(self, attacker: 'Creature', target: 'Creature', power: float) -> CombatResult:
        ...

    def add_creature(self, creature: 'Creature') -> None:
        ...
