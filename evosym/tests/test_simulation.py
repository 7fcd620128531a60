"""Tests for the simulation driver."""

from evosym.bootstrap import FOUNDER_ARCHITECTURE
from evosym.config import SimulationConfig
from evosym.creature import Creature
from evosym.simulation import Simulation


def _sim(**overrides):
    overrides.setdefault('seed', 123)
    return Simulation(config=SimulationConfig(**overrides))


class TestSimulation:
    def test_initialize_spawns_founders(self):
        sim = _sim(initial_population=10)
        founders = sim.initialize()
        assert len(founders) == 10
        assert all(c.generation == 0 for c in founders)
        assert len(sim.world.get_creatures()) == 10

    def test_step_initializes_lazily(self):
        sim = _sim(initial_population=8)
        stats = sim.step()
        assert sim.initialized
        assert stats.tick == 1
        assert stats.population > 0

    def test_run_with_callback(self):
        sim = _sim(initial_population=10)
        seen = []
        stats = sim.run(5, callback=lambda s: seen.append(s.tick))
        assert seen == [1, 2, 3, 4, 5]
        assert stats.tick == 5
        assert sim.world.tick == 5

    def test_same_seed_same_history(self):
        a = _sim(initial_population=15, seed=9).run(25)
        b = _sim(initial_population=15, seed=9).run(25)
        assert a == b

    def test_collapse_triggers_emergency_respawn(self):
        sim = _sim(initial_population=3, emergency_threshold=5, emergency_population=4)
        stats = sim.step()
        assert stats.emergency_events == 1
        assert stats.extinction_events == 0
        assert stats.population == 7

    def test_extinction_restarts_from_founders(self):
        sim = _sim(initial_population=0, emergency_population=6)
        stats = sim.step()
        assert stats.extinction_events == 1
        assert stats.population == 6
        assert all(c.brain.get_architecture() == FOUNDER_ARCHITECTURE
                   for c in sim.world.get_creatures())

    def test_emergency_keeps_survivor_generation(self):
        sim = _sim(initial_population=0, emergency_population=2)
        veteran = Creature(generation=7, rng=sim.rng)
        veteran.stats.fitness = 500.0
        rookie = Creature(generation=2, rng=sim.rng)

        spawned = sim.emergency_respawn([rookie, veteran])
        assert len(spawned) == 2
        assert all(c.generation == 7 for c in spawned)
        assert all(c.brain is not veteran.brain for c in spawned)

    def test_species_tracked_at_interval(self):
        sim = _sim(initial_population=10, species_update_interval=2)
        sim.step()
        assert sim.species.species_count == 0
        sim.step()
        assert sim.species.species_count >= 1

    def test_decision_tracing(self):
        sim = _sim(initial_population=5, trace_decisions=True)
        sim.step()
        living = sim.world.get_creatures()
        assert sim.recorder is not None
        assert any(sim.recorder.get_latest(c.id) is not None for c in living)

    def test_no_recorder_by_default(self):
        assert _sim().recorder is None

    def test_save_and_load(self, tmp_path):
        sim = _sim(initial_population=6)
        sim.run(3)
        path = sim.save_population(str(tmp_path / "population.json"))

        other = _sim(initial_population=0)
        loaded = other.load_population(path)
        assert {c.id for c in loaded} == {c.id for c in sim.world.get_creatures()}
        assert other.initialized
