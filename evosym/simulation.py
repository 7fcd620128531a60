"""
Simulation Driver

Single-threaded tick loop tying the pieces together:
1. world.update()     - prey, carrion, carrying capacity, food, index
2. creature.update()  - every living creature, in insertion order
3. species tracking   - every `species_update_interval` ticks
4. emergency recovery - repopulate from the fittest survivors on collapse

USAGE:
    from evosym import Simulation, SimulationConfig

    sim = Simulation(config=SimulationConfig(seed=42))
    sim.initialize()
    stats = sim.run(1000)
    print(stats.population, stats.max_generation)
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
from loguru import logger

from .bootstrap import EmergencyBrainFactory
from .config import CreatureConfig, SimulationConfig
from .creature import Creature
from .decisions import DecisionRecorder
from .genetics import generate_random_genetics
from .persistence import load_population, save_population
from .rng import ensure_rng
from .species import SpeciesTracker
from .world import World


@dataclass
class SimulationStats:
    tick: int
    population: int
    max_generation: int
    average_generation: float
    average_fitness: float
    total_births: int
    total_deaths: int
    species_count: int
    extinction_events: int
    emergency_events: int


class Simulation:
    """
    Owns a world and drives it tick by tick.

    Creatures born during a tick are added to the world immediately but
    only act from the next tick, since each tick iterates a snapshot of
    the living population.
    """

    def __init__(self, world: Optional[World] = None,
                 config: Optional[SimulationConfig] = None,
                 creature_config: Optional[CreatureConfig] = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or SimulationConfig()
        self.rng = ensure_rng(rng if rng is not None else self.config.seed)
        self.world = world if world is not None else World(rng=self.rng)
        self.creature_config = creature_config or CreatureConfig()

        self.species = SpeciesTracker(threshold=self.config.species_threshold)
        self.recorder: Optional[DecisionRecorder] = None
        if self.config.trace_decisions:
            self.recorder = DecisionRecorder(self.config.trace_history)

        self.tick = 0
        self.extinction_events = 0
        self.emergency_events = 0
        self.initialized = False

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def initialize(self) -> List[Creature]:
        """Spawn the founding population (generation 0)."""
        founders = [self._spawn(generation=0) for _ in range(self.config.initial_population)]
        self.initialized = True
        logger.info(f"[Simulation] Spawned {len(founders)} founders")
        return founders

    def _spawn(self, generation: int, genetics=None, brain=None) -> Creature:
        creature = Creature(
            generation=generation,
            genetics=genetics,
            position=self.world.random_position(),
            brain=brain,
            rng=self.rng,
            config=self.creature_config,
        )
        self.world.add_creature(creature)
        return creature

    # -------------------------------------------------------------------------
    # Tick loop
    # -------------------------------------------------------------------------

    def step(self) -> SimulationStats:
        """Advance the simulation one tick."""
        if not self.initialized:
            self.initialize()

        if self.recorder is not None:
            for creature in self.world.creatures.values():
                if not creature.is_alive:
                    self.recorder.forget(creature.id)

        self.world.update()

        for creature in self.world.get_creatures():
            if creature.is_alive:
                creature.update(self.world, self.recorder)

        self.tick += 1

        if self.tick % self.config.species_update_interval == 0:
            self.species.update(self.world.get_creatures(), self.tick)

        self._check_population_health()
        return self.get_stats()

    def run(self, ticks: int,
            callback: Optional[Callable[[SimulationStats], None]] = None) -> SimulationStats:
        """
        Run several ticks.

        Args:
            ticks: Number of ticks to run
            callback: Called with the stats after every tick

        Returns:
            Stats after the last tick
        """
        stats = self.get_stats()
        for _ in range(ticks):
            stats = self.step()
            if callback is not None:
                callback(stats)
        return stats

    def _check_population_health(self):
        living = self.world.get_creatures()
        if len(living) >= self.config.emergency_threshold:
            return

        if not living:
            self.extinction_events += 1
            logger.warning(f"[Simulation] Population extinct at tick {self.tick}")
        else:
            logger.warning(f"[Simulation] Population collapsed to {len(living)} at tick {self.tick}")

        self.emergency_respawn(living)

    def emergency_respawn(self, survivors: List[Creature]) -> List[Creature]:
        """
        Repopulate from the fittest survivors.

        Newcomers get random genetics and a mutated clone of the best
        survivor's brain, or a founder brain when nobody survived.
        """
        ranked = sorted(survivors, key=lambda c: c.stats.fitness, reverse=True)
        brains = [c.brain for c in ranked]
        generation = max((c.generation for c in ranked), default=0)

        spawned = []
        for _ in range(self.config.emergency_population):
            genetics = generate_random_genetics(self.rng)
            brain = EmergencyBrainFactory.create_emergency_brain(brains, genetics, self.rng)
            spawned.append(self._spawn(generation, genetics=genetics, brain=brain))

        self.emergency_events += 1
        logger.info(f"[Simulation] Emergency respawn: {len(spawned)} creatures "
                    f"(generation {generation}, {len(ranked)} survivors)")
        return spawned

    # -------------------------------------------------------------------------
    # Stats / persistence
    # -------------------------------------------------------------------------

    def get_stats(self) -> SimulationStats:
        living = self.world.get_creatures()
        count = len(living)
        return SimulationStats(
            tick=self.tick,
            population=count,
            max_generation=max((c.generation for c in living), default=0),
            average_generation=sum(c.generation for c in living) / count if count else 0.0,
            average_fitness=sum(c.stats.fitness for c in living) / count if count else 0.0,
            total_births=self.world.total_births,
            total_deaths=self.world.total_deaths,
            species_count=self.species.species_count,
            extinction_events=self.extinction_events,
            emergency_events=self.emergency_events,
        )

    def save_population(self, path: str) -> str:
        return save_population(self.world.get_creatures(), path, metadata={'tick': self.tick})

    def load_population(self, path: str) -> List[Creature]:
        """Add a saved population to the world (existing creatures are kept)."""
        creatures = load_population(path, rng=self.rng, config=self.creature_config)
        for creature in creatures:
            self.world.add_creature(creature)
        self.initialized = True
        return creatures
