"""
World Simulation - Reference Environment for Creatures

An in-memory world implementing the Environment contract:
- Circular or rectangular bounds
- Plant food and wandering prey, respawned each tick
- Carrion left by dead creatures, decaying over a few hundred ticks
- Obstacles that block vision rays
- Carrying capacity (density stress, overcrowding mortality, hard cap)

The world resolves feeding and combat but never updates creatures itself;
the simulation driver does that after world.update().
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
from loguru import logger

from .config import WorldConfig
from .creature import Creature
from .environment import (
    BoundaryShape,
    Carrion,
    CombatResult,
    Entity,
    EntityQuery,
    EntityType,
    FeedingResult,
    FOOD_TYPES,
    FoodEntity,
    SpatialQuery,
    Vector2,
    WorldBounds,
)
from .quadtree import Point, QuadTree, Rect
from .rng import ensure_rng


# Radius used to count neighbours for density stress
DENSITY_STRESS_RADIUS = 150.0


@dataclass
class WorldStats:
    tick: int
    living_creatures: int
    dead_creatures: int
    total_food: int
    plant_food: int
    prey_food: int
    carrion: int
    obstacles: int
    total_births: int
    total_deaths: int
    spatial_queries: int


# =============================================================================
# WORLD
# =============================================================================

class World:
    """
    Reference environment.

    Food and creatures are indexed in two quadtrees rebuilt lazily. Creatures
    move between rebuilds, so creature lookups widen the search by
    `index_slack` and then filter on current positions.
    """

    def __init__(self, config: Optional[WorldConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 populate: bool = True):
        self.config = config or WorldConfig()
        self.rng = ensure_rng(rng)

        cfg = self.config
        self.bounds = WorldBounds(
            width=cfg.width,
            height=cfg.height,
            shape=BoundaryShape(cfg.shape),
            center_x=cfg.center_x,
            center_y=cfg.center_y,
            radius=cfg.radius,
        )

        self.tick = 0
        self.creatures: Dict[str, Creature] = {}
        self.food: Dict[str, FoodEntity] = {}
        self.carrion: Dict[str, Carrion] = {}
        self.obstacles: Dict[str, Entity] = {}

        self.total_births = 0
        self.total_deaths = 0
        self.spatial_queries = 0

        self._entity_counter = 0
        self._entity_index: Optional[QuadTree] = None
        self._creature_index: Optional[QuadTree] = None
        self._dirty = True

        if populate:
            self._spawn_initial_entities()

    # -------------------------------------------------------------------------
    # Population
    # -------------------------------------------------------------------------

    def add_creature(self, creature: Creature) -> None:
        self.creatures[creature.id] = creature
        if creature.parent_ids and creature.stats.ticks_alive == 0:
            self.total_births += 1
        self._dirty = True

    def remove_creature(self, creature_id: str) -> bool:
        """Remove a creature, leaving carrion behind if it was dead."""
        creature = self.creatures.pop(creature_id, None)
        if creature is None:
            return False

        if not creature.is_alive:
            self.total_deaths += 1
            self._create_carrion(creature)
        self._dirty = True
        return True

    def get_creatures(self) -> List[Creature]:
        """Living creatures, in insertion order."""
        return [c for c in self.creatures.values() if c.is_alive]

    # -------------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        self._entity_counter += 1
        return f"{prefix}_{self._entity_counter}"

    def add_food(self, position: Vector2, entity_type: EntityType = EntityType.PLANT_FOOD,
                 energy: Optional[float] = None) -> FoodEntity:
        cfg = self.config
        if entity_type is EntityType.SMALL_PREY:
            food = FoodEntity(
                id=self._next_id("prey"),
                position=position.copy(),
                entity_type=entity_type,
                size=cfg.prey_size,
                energy=cfg.prey_energy if energy is None else energy,
                max_speed=cfg.prey_speed,
            )
        else:
            food = FoodEntity(
                id=self._next_id("plant" if entity_type is EntityType.PLANT_FOOD else "mushroom"),
                position=position.copy(),
                entity_type=entity_type,
                size=cfg.plant_size,
                energy=cfg.plant_energy if energy is None else energy,
            )
        self.food[food.id] = food
        self._dirty = True
        return food

    def add_obstacle(self, position: Vector2, size: Optional[float] = None) -> Entity:
        obstacle = Entity(
            id=self._next_id("obstacle"),
            position=position.copy(),
            entity_type=EntityType.OBSTACLE,
            size=self.config.obstacle_size if size is None else size,
        )
        self.obstacles[obstacle.id] = obstacle
        self._dirty = True
        return obstacle

    def random_position(self) -> Vector2:
        b = self.bounds
        if b.is_circular:
            angle = self.rng.random() * 2 * math.pi
            radius = self.rng.random() * b.radius * 0.9
            return Vector2(b.center_x + math.cos(angle) * radius,
                           b.center_y + math.sin(angle) * radius)
        return Vector2(self.rng.random() * b.width, self.rng.random() * b.height)

    def _spawn_initial_entities(self):
        cfg = self.config
        for _ in range(int(cfg.max_food * cfg.plant_density * 0.3)):
            self.add_food(self.random_position(), EntityType.PLANT_FOOD)
        for _ in range(int(cfg.max_food * cfg.prey_density * 0.1)):
            self.add_food(self.random_position(), EntityType.SMALL_PREY)
        for _ in range(cfg.obstacle_count):
            self.add_obstacle(self.random_position())

        logger.debug(f"[World] Spawned {len(self.food)} food items and "
                     f"{len(self.obstacles)} obstacles")

    # -------------------------------------------------------------------------
    # Spatial queries
    # -------------------------------------------------------------------------

    def _ensure_index(self):
        if not self._dirty:
            return

        cfg = self.config
        area = Rect(0.0, 0.0, self.bounds.width, self.bounds.height)

        entities = list(self.food.values()) + list(self.carrion.values()) + list(self.obstacles.values())
        self._entity_index = QuadTree.covering(
            (Point(e.position.x, e.position.y, e) for e in entities if e.is_active),
            capacity=cfg.quadtree_capacity, slack=cfg.index_slack, minimum=area)

        self._creature_index = QuadTree.covering(
            (Point(c.physics.position.x, c.physics.position.y, c)
             for c in self.creatures.values() if c.is_alive),
            capacity=cfg.quadtree_capacity, slack=cfg.index_slack, minimum=area)

        self._dirty = False

    def query_nearby_entities(self, query: SpatialQuery) -> EntityQuery:
        """
        Find entities within a radius of a point.

        Dead creatures and consumed food are never returned. Sorting and
        max_results apply to each category separately.

        Args:
            query: Position, radius and filters

        Returns:
            EntityQuery with food, creatures and environmental lists
        """
        self._ensure_index()
        self.spatial_queries += 1

        types = set(query.entity_types) if query.entity_types is not None else None
        position = query.position
        result = EntityQuery()

        food_hits = []
        env_hits = []
        for entity in self._entity_index.query_radius(position.x, position.y, query.radius):
            if not entity.is_active:
                continue
            if types is not None and entity.entity_type not in types:
                continue
            distance = position.distance_to(entity.position)
            if entity.entity_type in FOOD_TYPES:
                food_hits.append((distance, entity))
            else:
                env_hits.append((distance, entity))

        creature_hits = []
        if types is None or EntityType.CREATURE in types:
            search = query.radius + self.config.index_slack
            for creature in self._creature_index.query_radius(position.x, position.y, search):
                if creature is query.exclude_creature or not creature.is_alive:
                    continue
                if creature.id not in self.creatures:
                    continue
                distance = position.distance_to(creature.physics.position)
                if distance <= query.radius:
                    creature_hits.append((distance, creature))

        for hits, target in ((food_hits, result.food),
                             (creature_hits, result.creatures),
                             (env_hits, result.environmental)):
            if query.sort_by_distance:
                hits.sort(key=lambda hit: hit[0])
            if query.max_results is not None:
                hits = hits[:query.max_results]
            target.extend(item for _, item in hits)

        return result

    # -------------------------------------------------------------------------
    # Interactions
    # -------------------------------------------------------------------------

    def process_feeding(self, creature: Creature, food: FoodEntity, power: float) -> FeedingResult:
        """
        Let a creature eat a food item.

        The item must still be present and within reach. Energy gained is
        food energy * power * diet preference, capped at 100. The item is
        removed so only one creature can eat it.
        """
        store = self.carrion if isinstance(food, Carrion) else self.food
        if not food.is_active or store.get(food.id) is not food:
            return FeedingResult(success=False)

        distance = creature.physics.position.distance_to(food.position)
        if distance > creature.physics.collision_radius + food.size + self.config.feeding_range_bonus:
            return FeedingResult(success=False)

        if food.entity_type is EntityType.PLANT_FOOD:
            multiplier = creature.genetics.plant_preference
        else:
            multiplier = creature.genetics.meat_preference

        energy_gain = food.energy * power * multiplier
        creature.physics.energy = min(creature.config.max_energy, creature.physics.energy + energy_gain)

        food.is_active = False
        del store[food.id]

        logger.trace(f"[World] {creature.id} ate {food.entity_type.value} (+{energy_gain:.1f})")
        return FeedingResult(success=True, energy_gain=energy_gain, food_consumed=True)

    def process_combat(self, attacker: Creature, target: Creature, power: float) -> CombatResult:
        """
        Resolve an attack.

        Out of range costs the attacker 2 energy. Otherwise a success roll
        decides between damage to the target and a smaller miss penalty.
        """
        distance = attacker.physics.position.distance_to(target.physics.position)
        if distance > attacker.physics.collision_radius + target.physics.collision_radius:
            return CombatResult(success=False, energy_loss=2.0)

        if self.rng.random() < self.combat_success_chance(attacker, target, power):
            damage = power * 20
            target.physics.health = max(0.0, target.physics.health - damage)
            energy_loss = 2 + power * 3
            attacker.physics.energy = max(0.0, attacker.physics.energy - energy_loss)
            logger.trace(f"[World] {attacker.id} hit {target.id} for {damage:.1f}")
            return CombatResult(success=True, damage=damage, energy_loss=energy_loss)

        energy_loss = 1 + power
        attacker.physics.energy = max(0.0, attacker.physics.energy - energy_loss)
        return CombatResult(success=False, energy_loss=energy_loss)

    @staticmethod
    def combat_success_chance(attacker: Creature, target: Creature, power: float) -> float:
        chance = (0.3
                  + (attacker.genetics.size / target.genetics.size) * 0.3
                  + attacker.genetics.aggression * 0.4
                  + power * 0.2
                  - target.genetics.speed * 0.2)
        return max(0.1, min(0.9, chance))

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def update(self):
        """Advance the world one tick. Creatures are not updated here."""
        self.tick += 1
        self._move_prey()
        self._update_carrion()
        self._apply_carrying_capacity()
        self._remove_dead()
        self._spawn_entities()
        self._dirty = True
        self._ensure_index()

    def _move_prey(self):
        for food in self.food.values():
            if food.entity_type is not EntityType.SMALL_PREY or food.max_speed <= 0:
                continue
            direction = self.rng.random() * 2 * math.pi
            food.velocity = Vector2(math.cos(direction) * food.max_speed,
                                    math.sin(direction) * food.max_speed)
            moved = Vector2(food.position.x + food.velocity.x, food.position.y + food.velocity.y)
            food.position = self.bounds.clamp(moved)

    def _create_carrion(self, creature: Creature) -> Carrion:
        cfg = self.config
        energy = max(creature.physics.energy, cfg.carrion_default_energy)
        carrion = Carrion(
            id=self._next_id(f"carrion_{creature.id}"),
            position=creature.physics.position.copy(),
            entity_type=EntityType.CARRION,
            size=creature.physics.collision_radius,
            energy=energy,
            original_creature_id=creature.id,
            original_energy=energy,
            created_at=self.tick,
            decay_time=int(self.rng.integers(cfg.carrion_min_decay, cfg.carrion_max_decay + 1)),
        )
        self.carrion[carrion.id] = carrion
        logger.trace(f"[World] Carrion from {creature.id} ({creature.cause_of_death})")
        return carrion

    def _update_carrion(self):
        for carrion in list(self.carrion.values()):
            stage = (self.tick - carrion.created_at) / carrion.decay_time
            carrion.decay_stage = min(stage, 1.0)

            if stage < 0.3:
                carrion.scent = 1.0 - stage * 0.5
            elif stage < 0.7:
                carrion.scent = 0.8 - stage * 0.3
            else:
                carrion.scent = max(0.0, 0.3 - stage * 0.2)

            carrion.energy = carrion.original_energy * (1 - carrion.decay_stage * 0.8)

            if stage >= 1.0:
                carrion.is_active = False
                del self.carrion[carrion.id]

    def _apply_carrying_capacity(self):
        cfg = self.config
        living = self.get_creatures()
        population = len(living)
        if population <= cfg.target_population:
            return

        overpopulation_ratio = (population - cfg.target_population) / cfg.target_population

        # Overcrowding mortality grows with the square of the excess
        mortality = cfg.overpopulation_mortality * overpopulation_ratio ** 2
        for creature in living:
            if self.rng.random() < mortality:
                creature.physics.health = 0.0
                creature.die("overcrowding")

        self._ensure_index()
        for creature in living:
            if not creature.is_alive:
                continue
            nearby = self.query_nearby_entities(SpatialQuery(
                position=creature.physics.position,
                radius=DENSITY_STRESS_RADIUS,
                entity_types=(EntityType.CREATURE,),
                exclude_creature=creature,
            ))
            stress = len(nearby.creatures) * cfg.density_stress_factor
            creature.physics.energy = max(0.0, creature.physics.energy - stress)

        survivors = [c for c in living if c.is_alive]
        excess = len(survivors) - cfg.max_population
        if excess > 0:
            # Weakest first; near-equal fitness culls the older creature
            survivors.sort(key=lambda c: (round(c.stats.fitness, 1), -c.physics.age))
            for victim in survivors[:excess]:
                victim.physics.health = 0.0
                victim.die("population cap")
            logger.warning(f"[World] Population cap: culled {excess} creatures "
                           f"({population}/{cfg.max_population})")

        if self.tick % 100 == 0:
            logger.info(f"[World] Population pressure: {population}/{cfg.target_population}")

    def _remove_dead(self):
        for creature_id in [cid for cid, c in self.creatures.items() if not c.is_alive]:
            self.remove_creature(creature_id)

    def resource_multiplier(self) -> float:
        """Food spawn scaling: scarce when overpopulated, generous when sparse."""
        cfg = self.config
        population = len(self.get_creatures())
        if population > cfg.target_population:
            ratio = (population - cfg.target_population) / cfg.target_population
            return max(0.2, cfg.resource_scaling_factor - ratio * 0.3)
        if population < cfg.target_population * 0.5:
            return 1.5
        return 1.0

    def _spawn_entities(self):
        cfg = self.config
        multiplier = self.resource_multiplier()

        plants = sum(1 for f in self.food.values() if f.entity_type is EntityType.PLANT_FOOD)
        if plants < cfg.max_food * cfg.plant_density * 0.5:
            if self.rng.random() < cfg.food_spawn_rate * cfg.plant_density * multiplier:
                self.add_food(self.random_position(), EntityType.PLANT_FOOD)

        prey = sum(1 for f in self.food.values() if f.entity_type is EntityType.SMALL_PREY)
        if prey < cfg.max_food * cfg.prey_density * 0.2:
            if self.rng.random() < cfg.prey_spawn_rate * cfg.prey_density * multiplier:
                self.add_food(self.random_position(), EntityType.SMALL_PREY)

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_stats(self) -> WorldStats:
        living = sum(1 for c in self.creatures.values() if c.is_alive)
        return WorldStats(
            tick=self.tick,
            living_creatures=living,
            dead_creatures=len(self.creatures) - living,
            total_food=len(self.food) + len(self.carrion),
            plant_food=sum(1 for f in self.food.values() if f.entity_type is EntityType.PLANT_FOOD),
            prey_food=sum(1 for f in self.food.values() if f.entity_type is EntityType.SMALL_PREY),
            carrion=len(self.carrion),
            obstacles=len(self.obstacles),
            total_births=self.total_births,
            total_deaths=self.total_deaths,
            spatial_queries=self.spatial_queries,
        )

    def __repr__(self) -> str:
        return (f"World(tick={self.tick}, creatures={len(self.creatures)}, "
                f"food={len(self.food)}, carrion={len(self.carrion)})")
