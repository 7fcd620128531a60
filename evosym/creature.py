"""
Creature - An evolving agent with a neural brain

Each tick a living creature runs:
1. Sense  - 14 sensor values from the environment and its own vitals
2. Think  - brain forward pass to 5 action values
3. Act    - move, and maybe eat, attack or mate
4. Physics/vitals - integrate motion, age, burn energy
5. Survival - die on starvation, injury or old age

USAGE:
    from evosym.creature import Creature

    creature = Creature(rng=rng)
    trace = creature.update(world)
    if not creature.is_alive:
        ...
"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .bootstrap import BootstrapBrainFactory, NEUTRAL_SENSOR_VALUE, SENSOR_COUNT
from .config import CreatureConfig
from .decisions import CreatureActions, DecisionObserver, DecisionTrace
from .environment import (
    Carrion,
    Environment,
    EntityType,
    FOOD_TYPES,
    SpatialQuery,
    Vector2,
    WorldBounds,
)
from .genetics import (
    Genetics,
    calculate_genetic_distance,
    clamp_genetics,
    crossover_genetics,
    describe_genetics,
    generate_random_genetics,
    genetics_color,
    mutate_genetics,
)
from .network import NeuralNetwork
from .rng import ensure_rng


# Ray directions relative to heading: forward, left, right, back
VISION_RAY_OFFSETS = (0.0, -math.pi / 2, math.pi / 2, math.pi)


# =============================================================================
# STATE
# =============================================================================

class CreatureState(Enum):
    ALIVE = "alive"
    DEAD = "dead"
    REPRODUCING = "reproducing"


@dataclass
class Physics:
    """Body state integrated each tick."""
    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    rotation: float = 0.0
    energy: float = 100.0
    health: float = 100.0
    age: int = 0
    max_speed: float = 3.0
    collision_radius: float = 10.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'Physics':
        return cls(
            position=Vector2.from_dict(d['position']),
            velocity=Vector2.from_dict(d['velocity']),
            rotation=float(d['rotation']),
            energy=float(d['energy']),
            health=float(d['health']),
            age=int(d['age']),
            max_speed=float(d['max_speed']),
            collision_radius=float(d['collision_radius']),
        )


@dataclass
class CreatureStats:
    """Lifetime counters; fitness is derived from them."""
    ticks_alive: int = 0
    food_eaten: int = 0
    feeding_attempts: int = 0
    distance_traveled: float = 0.0
    attacks_given: int = 0
    attacks_received: int = 0
    reproduction_attempts: int = 0
    offspring: int = 0
    fitness: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'CreatureStats':
        return cls(**d)


# =============================================================================
# SENSOR CACHE
# =============================================================================

@dataclass
class SurroundingsReading:
    """Environment-derived sensor values (distances already normalized)."""
    food_distance: float = 1.0
    food_type: float = 0.5
    carrion_distance: float = 1.0
    carrion_freshness: float = 0.0
    predator_distance: float = 1.0
    prey_distance: float = 1.0
    population_density: float = 0.0


@dataclass
class SensorCache:
    data: Optional[SurroundingsReading] = None
    last_tick: int = -1
    last_position: Optional[Vector2] = None

    def store(self, data: SurroundingsReading, tick: int, position: Vector2):
        self.data = data
        self.last_tick = tick
        self.last_position = position.copy()

    def invalidate(self):
        self.data = None
        self.last_position = None


def is_cache_stale(cache: SensorCache, tick: int, position: Vector2,
                   max_age: int, max_distance: float) -> bool:
    """True when the cached reading is too old or was taken too far away."""
    if cache.data is None or cache.last_position is None:
        return True
    if tick - cache.last_tick >= max_age or tick < cache.last_tick:
        return True
    return position.distance_to(cache.last_position) > max_distance


def compose_sensors(reading: SurroundingsReading, vision: Sequence[float],
                    energy: float, health: float, age: float) -> np.ndarray:
    """Assemble the sensor vector in brain input order."""
    return np.array([
        reading.food_distance,
        reading.food_type,
        reading.carrion_distance,
        reading.carrion_freshness,
        reading.predator_distance,
        reading.prey_distance,
        energy,
        health,
        age,
        reading.population_density,
        *vision,
    ], dtype=np.float64)


def generate_creature_id(rng: np.random.Generator) -> str:
    return f"creature_{int(rng.integers(0, 16 ** 10)):010x}"


# =============================================================================
# CREATURE
# =============================================================================

class Creature:
    """
    An agent owning its genetics and brain.

    Brains come from the bootstrap factory unless one is passed in, in
    which case the creature takes ownership of it.
    """

    def __init__(self, generation: int = 0, genetics: Optional[Genetics] = None,
                 parents: Optional[Sequence['Creature']] = None,
                 position: Optional[Vector2] = None,
                 brain: Optional[NeuralNetwork] = None,
                 rng: Optional[np.random.Generator] = None,
                 config: Optional[CreatureConfig] = None,
                 creature_id: Optional[str] = None):
        self.rng = ensure_rng(rng)
        self.config = config or CreatureConfig()

        self.id = creature_id or generate_creature_id(self.rng)
        self.generation = generation
        parents = list(parents or [])
        self.parent_ids: List[str] = [p.id for p in parents]

        self.genetics = genetics.copy() if genetics is not None else generate_random_genetics(self.rng)

        if brain is None:
            brain = BootstrapBrainFactory.create_brain_for_generation(
                generation, self.genetics, [p.brain for p in parents], self.rng)
        self.brain = brain

        self.physics = self._initialize_physics(position)
        self.state = CreatureState.ALIVE
        self.stats = CreatureStats()
        self.reproduction_cooldown = 0
        self.is_mateable = False
        self.cause_of_death: Optional[str] = None

        self._sensor_cache = SensorCache()
        self._vision: Optional[List[float]] = None

    def _initialize_physics(self, position: Optional[Vector2]) -> Physics:
        cfg = self.config
        if position is None:
            span = cfg.world_size - 2 * cfg.spawn_margin
            position = Vector2(cfg.spawn_margin + self.rng.random() * span,
                               cfg.spawn_margin + self.rng.random() * span)
        return Physics(
            position=position.copy(),
            rotation=float(self.rng.random() * 2 * math.pi),
            energy=cfg.max_energy,
            health=cfg.max_health,
            max_speed=self.genetics.speed * cfg.speed_multiplier,
            collision_radius=self.genetics.size * cfg.radius_multiplier,
        )

    @property
    def is_alive(self) -> bool:
        return self.state is CreatureState.ALIVE

    @property
    def is_mature(self) -> bool:
        return self.physics.age >= self.genetics.maturity_age

    @property
    def color(self) -> str:
        return genetics_color(self.genetics)

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def update(self, environment: Optional[Environment] = None,
               observer: Optional[DecisionObserver] = None) -> Optional[DecisionTrace]:
        """
        Run one tick of the creature.

        Args:
            environment: World to sense and act in (None: neutral senses,
                movement only)
            observer: Receives the tick's decision trace

        Returns:
            The decision trace, or None if the creature is not alive
        """
        if self.state is not CreatureState.ALIVE:
            return None

        sensors = self.sense(environment)
        outputs, actions = self.think(sensors)

        trace = DecisionTrace(
            creature_id=self.id,
            tick=self.physics.age,
            generation=self.generation,
            sensor_inputs=sensors.tolist(),
            brain_outputs=outputs.tolist(),
            actions=actions,
            energy=self.physics.energy,
        )

        self.act(actions, environment)
        self.update_physics(environment)
        self.update_internal_state()
        self.check_survival()
        self.update_stats()

        if observer is not None:
            observer.record_decision(trace)
        return trace

    # -------------------------------------------------------------------------
    # Sense
    # -------------------------------------------------------------------------

    def sense(self, environment: Optional[Environment] = None) -> np.ndarray:
        if environment is None:
            return np.full(SENSOR_COUNT, NEUTRAL_SENSOR_VALUE)

        cfg = self.config
        tick = self.physics.age

        if not cfg.sensor_cache_enabled:
            reading = self.read_surroundings(environment)
        elif is_cache_stale(self._sensor_cache, tick, self.physics.position,
                            cfg.sensor_cache_max_age, cfg.sensor_cache_max_distance):
            reading = self.read_surroundings(environment)
            self._sensor_cache.store(reading, tick, self.physics.position)
        else:
            reading = self._sensor_cache.data

        # Rays are recast periodically; stale values are kept in between
        if self._vision is None or tick % cfg.vision_interval == 0:
            self._vision = self.cast_vision(environment)

        return compose_sensors(
            reading,
            self._vision,
            energy=self.physics.energy / cfg.max_energy,
            health=self.physics.health / cfg.max_health,
            age=min(self.physics.age / self.genetics.lifespan, 1.0),
        )

    def read_surroundings(self, environment: Environment) -> SurroundingsReading:
        """Query the environment and reduce the results to sensor values."""
        cfg = self.config
        radius = self.genetics.vision_range * cfg.sensing_radius_multiplier
        position = self.physics.position

        result = environment.query_nearby_entities(SpatialQuery(
            position=position,
            radius=radius,
            entity_types=FOOD_TYPES + (EntityType.CREATURE,),
            sort_by_distance=True,
            exclude_creature=self,
        ))

        reading = SurroundingsReading()

        nearest_food = math.inf
        nearest_carrion = math.inf
        for food in result.food:
            distance = position.distance_to(food.position)
            if isinstance(food, Carrion):
                # Scent shrinks the range at which carrion is noticed
                if distance <= radius * food.scent and distance < nearest_carrion:
                    nearest_carrion = distance
                    reading.carrion_freshness = 1.0 - food.decay_stage
            elif distance < nearest_food:
                nearest_food = distance
                reading.food_type = (self.genetics.plant_preference if food.is_plant
                                     else self.genetics.meat_preference)

        if nearest_food < math.inf:
            reading.food_distance = min(nearest_food / radius, 1.0)
        if nearest_carrion < math.inf:
            reading.carrion_distance = min(nearest_carrion / radius, 1.0)

        nearest_predator = math.inf
        nearest_prey = math.inf
        density = 0.0
        for other in result.creatures:
            if other is self or not other.is_alive:
                continue
            distance = position.distance_to(other.physics.position)
            density += cfg.density_per_creature

            threat = ((other.genetics.size - self.genetics.size) +
                      (other.genetics.aggression - self.genetics.aggression))
            if threat > cfg.threat_threshold:
                nearest_predator = min(nearest_predator, distance)
            elif threat < -cfg.threat_threshold:
                nearest_prey = min(nearest_prey, distance)

        if nearest_predator < math.inf:
            reading.predator_distance = min(nearest_predator / radius, 1.0)
        if nearest_prey < math.inf:
            reading.prey_distance = min(nearest_prey / radius, 1.0)
        reading.population_density = min(density, 1.0)

        return reading

    def cast_vision(self, environment: Environment) -> List[float]:
        max_distance = self.genetics.vision_range * self.config.vision_ray_multiplier
        return [self._cast_ray(environment, offset, max_distance) for offset in VISION_RAY_OFFSETS]

    def _cast_ray(self, environment: Environment, angle_offset: float, max_distance: float) -> float:
        """Normalized distance to the first obstacle along a ray, 1.0 if clear."""
        cfg = self.config
        angle = self.physics.rotation + angle_offset
        dx, dy = math.cos(angle), math.sin(angle)
        origin = self.physics.position

        for i in range(1, cfg.vision_samples + 1):
            distance = (i / cfg.vision_samples) * max_distance
            sample = Vector2(origin.x + dx * distance, origin.y + dy * distance)
            hits = environment.query_nearby_entities(SpatialQuery(
                position=sample,
                radius=cfg.vision_obstacle_radius,
                entity_types=(EntityType.OBSTACLE,),
                max_results=1,
            ))
            if hits.environmental:
                return distance / max_distance
        return 1.0

    # -------------------------------------------------------------------------
    # Think / act
    # -------------------------------------------------------------------------

    def think(self, sensors: np.ndarray) -> Tuple[np.ndarray, CreatureActions]:
        outputs = self.brain.process(sensors)
        return outputs, CreatureActions.from_outputs(outputs)

    def act(self, actions: CreatureActions, environment: Optional[Environment] = None):
        cfg = self.config
        self.apply_movement(actions.move_x, actions.move_y)

        if environment is None:
            return

        if actions.eat > cfg.eat_threshold:
            self.attempt_eating(environment)
        if actions.attack > cfg.attack_threshold:
            self.attempt_attack(environment)
        if actions.reproduce > cfg.reproduce_threshold and self.can_reproduce():
            self.attempt_reproduction(environment)

    def apply_movement(self, move_x: float, move_y: float):
        p = self.physics
        speed = self.genetics.speed * p.max_speed
        p.velocity = Vector2(move_x * speed, move_y * speed)

        cost = (abs(move_x) + abs(move_y)) * self.genetics.size * self.config.movement_energy_cost
        p.energy = max(0.0, p.energy - cost)

        if move_x != 0 or move_y != 0:
            p.rotation = math.atan2(move_y, move_x)

    def attempt_eating(self, environment: Environment) -> bool:
        cfg = self.config
        self.stats.feeding_attempts += 1

        result = environment.query_nearby_entities(SpatialQuery(
            position=self.physics.position,
            radius=self.physics.collision_radius + cfg.feeding_reach,
            entity_types=FOOD_TYPES,
            max_results=1,
            sort_by_distance=True,
        ))
        if not result.food:
            return False

        food = result.food[0]
        if food.entity_type is EntityType.CARRION:
            power = self.genetics.meat_preference * cfg.carrion_feeding_power
        else:
            power = cfg.plant_feeding_power

        # The environment re-validates the food, so a claimed item fails here
        feeding = environment.process_feeding(self, food, power)
        if not feeding.success:
            return False

        self.stats.food_eaten += 1
        self._sensor_cache.invalidate()
        return True

    def attempt_attack(self, environment: Environment) -> bool:
        result = environment.query_nearby_entities(SpatialQuery(
            position=self.physics.position,
            radius=self.physics.collision_radius + self.config.attack_reach,
            entity_types=(EntityType.CREATURE,),
            max_results=1,
            sort_by_distance=True,
            exclude_creature=self,
        ))
        if not result.creatures:
            return False

        target = result.creatures[0]
        combat = environment.process_combat(self, target, self.genetics.aggression)
        if combat.success:
            self.stats.attacks_given += 1
            target.stats.attacks_received += 1
        return combat.success

    def attempt_reproduction(self, environment: Environment) -> Optional['Creature']:
        """
        Mate with the first compatible creature nearby.

        Returns:
            The offspring, or None if no suitable mate was in range
        """
        cfg = self.config
        self.stats.reproduction_attempts += 1

        result = environment.query_nearby_entities(SpatialQuery(
            position=self.physics.position,
            radius=self.physics.collision_radius + cfg.mating_reach,
            entity_types=(EntityType.CREATURE,),
            max_results=cfg.max_mate_candidates,
            sort_by_distance=True,
            exclude_creature=self,
        ))

        for mate in result.creatures:
            if not (mate.is_alive and self.is_same_species(mate)
                    and mate.can_reproduce() and mate.is_mature):
                continue

            child = create_offspring(self, mate, bounds=getattr(environment, 'bounds', None),
                                     rng=self.rng)
            environment.add_creature(child)

            for parent in (self, mate):
                parent.physics.energy = max(0.0, parent.physics.energy - parent.genetics.reproduction_cost)
                parent.reproduction_cooldown = cfg.reproduction_cooldown

            logger.debug(f"[Creature] Birth: {self.id} + {mate.id} -> {child.id} "
                         f"(gen {child.generation})")
            return child

        logger.trace(f"[Creature] {self.id} found no suitable mate among "
                     f"{len(result.creatures)} nearby")
        return None

    # -------------------------------------------------------------------------
    # Physics / vitals
    # -------------------------------------------------------------------------

    def update_physics(self, environment: Optional[Environment] = None):
        p = self.physics
        p.position.x += p.velocity.x
        p.position.y += p.velocity.y

        self._apply_boundaries(getattr(environment, 'bounds', None))

        p.velocity.x *= self.config.drag
        p.velocity.y *= self.config.drag
        self.stats.distance_traveled += p.velocity.length()

    def _apply_boundaries(self, bounds: Optional[WorldBounds]):
        p = self.physics
        margin = self.config.boundary_margin

        if bounds is None:
            limit = self.config.world_size - margin
            p.position.x = min(max(p.position.x, margin), limit)
            p.position.y = min(max(p.position.y, margin), limit)
            return

        if bounds.is_circular:
            dx = p.position.x - bounds.center_x
            dy = p.position.y - bounds.center_y
            if math.hypot(dx, dy) <= bounds.radius - margin:
                return

            # Back inside, then turn around with up to 45 degrees of jitter
            angle = math.atan2(dy, dx)
            safe_radius = bounds.radius - 2 * margin
            p.position.x = bounds.center_x + math.cos(angle) * safe_radius
            p.position.y = bounds.center_y + math.sin(angle) * safe_radius

            heading = angle + math.pi + (self.rng.random() - 0.5) * math.pi * 0.5
            speed = p.velocity.length() * 0.8
            p.velocity = Vector2(math.cos(heading) * speed, math.sin(heading) * speed)
            p.rotation = heading
            return

        if p.position.x < margin:
            p.position.x = margin + 5
            p.velocity.x = abs(p.velocity.x) * 0.6
            p.velocity.y += (self.rng.random() - 0.5) * 2
        elif p.position.x > bounds.width - margin:
            p.position.x = bounds.width - margin - 5
            p.velocity.x = -abs(p.velocity.x) * 0.6
            p.velocity.y += (self.rng.random() - 0.5) * 2

        if p.position.y < margin:
            p.position.y = margin + 5
            p.velocity.y = abs(p.velocity.y) * 0.6
            p.velocity.x += (self.rng.random() - 0.5) * 2
        elif p.position.y > bounds.height - margin:
            p.position.y = bounds.height - margin - 5
            p.velocity.y = -abs(p.velocity.y) * 0.6
            p.velocity.x += (self.rng.random() - 0.5) * 2

    def update_internal_state(self):
        cfg = self.config
        p = self.physics

        p.age += 1
        self.stats.ticks_alive += 1

        old_energy = p.energy
        p.energy = max(0.0, p.energy - cfg.energy_decay_rate / self.genetics.efficiency)
        if p.energy <= cfg.critical_energy < old_energy:
            logger.trace(f"[Creature] {self.id} critical energy {p.energy:.1f} at age {p.age}")

        was_mateable = self.is_mateable
        self.is_mateable = p.age > self.genetics.maturity_age
        if self.is_mateable and not was_mateable:
            logger.trace(f"[Creature] {self.id} matured at age {p.age}")

        if self.reproduction_cooldown > 0:
            self.reproduction_cooldown -= 1

    def check_survival(self):
        p = self.physics
        if p.energy <= 0:
            cause = "starvation"
        elif p.health <= 0:
            cause = "injury"
        elif p.age > self.genetics.lifespan:
            cause = "old age"
        else:
            return
        self.die(cause)

    def die(self, cause: str):
        if self.state is CreatureState.DEAD:
            return
        self.state = CreatureState.DEAD
        self.cause_of_death = cause
        logger.debug(f"[Creature] {self.id} died of {cause} at age {self.physics.age} "
                     f"(gen {self.generation}, fitness {self.stats.fitness:.1f})")

    def update_stats(self):
        s = self.stats
        s.fitness = (s.ticks_alive + s.offspring * 100 +
                     s.distance_traveled * 0.1 + s.food_eaten * 5)

    # -------------------------------------------------------------------------
    # Reproduction rules
    # -------------------------------------------------------------------------

    def can_reproduce(self) -> bool:
        return (self.is_mateable and self.reproduction_cooldown == 0 and
                self.physics.energy > self.config.min_reproduction_energy)

    def is_same_species(self, other: 'Creature') -> bool:
        """
        Founders always interbreed, close generations always interbreed,
        otherwise genetics must be within the species distance.
        """
        if self.generation == 0 and other.generation == 0:
            return True
        if abs(self.generation - other.generation) <= self.config.species_generation_window:
            return True
        distance = calculate_genetic_distance(self.genetics, other.genetics)
        return distance < self.config.species_distance_threshold

    # -------------------------------------------------------------------------
    # Description / serialization
    # -------------------------------------------------------------------------

    def get_description(self) -> str:
        p = self.physics
        return (f"{self.id} (gen {self.generation}, {self.state.value}): "
                f"{describe_genetics(self.genetics)} | energy {p.energy:.1f}, "
                f"health {p.health:.1f}, age {p.age}/{self.genetics.lifespan:.0f}, "
                f"fitness {self.stats.fitness:.1f}")

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'generation': self.generation,
            'parent_ids': list(self.parent_ids),
            'state': self.state.value,
            'cause_of_death': self.cause_of_death,
            'genetics': self.genetics.to_dict(),
            'physics': self.physics.to_dict(),
            'stats': self.stats.to_dict(),
            'reproduction_cooldown': self.reproduction_cooldown,
            'is_mateable': self.is_mateable,
            'brain': self.brain.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict, rng: Optional[np.random.Generator] = None,
                  config: Optional[CreatureConfig] = None) -> 'Creature':
        creature = cls(
            generation=int(d['generation']),
            genetics=Genetics.from_dict(d['genetics']),
            brain=NeuralNetwork.from_dict(d['brain']),
            rng=rng,
            config=config,
            creature_id=d['id'],
        )
        creature.parent_ids = list(d.get('parent_ids', []))
        creature.state = CreatureState(d.get('state', CreatureState.ALIVE.value))
        creature.cause_of_death = d.get('cause_of_death')
        creature.physics = Physics.from_dict(d['physics'])
        creature.stats = CreatureStats.from_dict(d['stats'])
        creature.reproduction_cooldown = int(d.get('reproduction_cooldown', 0))
        creature.is_mateable = bool(d.get('is_mateable', False))
        return creature

    def __repr__(self) -> str:
        return f"Creature({self.id}, gen={self.generation}, {self.state.value})"


# =============================================================================
# OFFSPRING
# =============================================================================

def create_offspring(parent1: Creature, parent2: Creature,
                     position: Optional[Vector2] = None,
                     bounds: Optional[WorldBounds] = None,
                     rng: Optional[np.random.Generator] = None) -> Creature:
    """
    Create a child of two creatures.

    Args:
        parent1: First parent (its config is inherited)
        parent2: Second parent
        position: Explicit spawn point; defaults to the parents' midpoint
            plus jitter, kept inside `bounds`
        bounds: World bounds for clamping the spawn point
        rng: Random source (defaults to parent1's)

    Returns:
        The new creature, one generation past the older-generation parent
    """
    rng = rng if rng is not None else parent1.rng
    cfg = parent1.config

    genetics = crossover_genetics(parent1.genetics, parent2.genetics, rng)
    genetics = clamp_genetics(mutate_genetics(genetics, cfg.offspring_mutation_rate,
                                              cfg.offspring_mutation_strength, rng))

    if position is None:
        position = _offspring_position(parent1, parent2, bounds, rng)

    child = Creature(
        generation=max(parent1.generation, parent2.generation) + 1,
        genetics=genetics,
        parents=[parent1, parent2],
        position=position,
        rng=rng,
        config=cfg,
    )

    parent1.stats.offspring += 1
    parent2.stats.offspring += 1
    return child


def _offspring_position(parent1: Creature, parent2: Creature,
                        bounds: Optional[WorldBounds], rng: np.random.Generator) -> Vector2:
    cfg = parent1.config
    a, b = parent1.physics.position, parent2.physics.position
    x = (a.x + b.x) / 2 + (rng.random() - 0.5) * cfg.offspring_jitter
    y = (a.y + b.y) / 2 + (rng.random() - 0.5) * cfg.offspring_jitter

    if bounds is not None:
        return bounds.clamp(Vector2(x, y), margin=cfg.spawn_margin)

    limit = cfg.world_size - cfg.spawn_margin
    return Vector2(min(max(x, cfg.spawn_margin), limit), min(max(y, cfg.spawn_margin), limit))
