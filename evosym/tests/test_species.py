"""Tests for species clustering and tracking."""

from evosym.creature import Creature
from evosym.genetics import Genetics
from evosym.species import (
    SpeciesTracker,
    cluster_by_genetics,
    generate_species_name,
    population_trend,
)


def _population(rng, genetics, count):
    return [Creature(genetics=genetics, rng=rng) for _ in range(count)]


HERBIVORE = Genetics(size=0.6, plant_preference=0.9, meat_preference=0.1)
CARNIVORE = Genetics(size=1.8, aggression=0.9, plant_preference=0.1, meat_preference=0.9)


class TestNaming:
    def test_names(self):
        assert generate_species_name(HERBIVORE) == "Tiny Browsers"
        assert generate_species_name(CARNIVORE) == "Giant Hunters"
        assert generate_species_name(Genetics()) == "Common Foragers"
        assert generate_species_name(Genetics(speed=1.4)) == "Swift Foragers"

    def test_trend(self):
        assert population_trend(10, 0) == "extinct"
        assert population_trend(0, 4) == "growing"
        assert population_trend(10, 12) == "growing"
        assert population_trend(10, 8) == "declining"
        assert population_trend(10, 10) == "stable"


class TestClustering:
    def test_two_distinct_groups(self, rng):
        creatures = _population(rng, HERBIVORE, 3) + _population(rng, CARNIVORE, 2)
        groups = cluster_by_genetics(creatures, threshold=0.3)
        assert sorted(len(g) for g in groups) == [2, 3]

    def test_huge_threshold_merges_everything(self, rng):
        creatures = _population(rng, HERBIVORE, 3) + _population(rng, CARNIVORE, 2)
        assert len(cluster_by_genetics(creatures, threshold=100.0)) == 1


class TestTracker:
    def test_identities_persist(self, rng):
        tracker = SpeciesTracker()
        herbivores = _population(rng, HERBIVORE, 4)
        carnivores = _population(rng, CARNIVORE, 2)

        tracker.update(herbivores + carnivores, tick=50)
        first_ids = {s.name: s.id for s in tracker.get_species()}

        tracker.update(herbivores + carnivores[:1], tick=100)
        second = {s.name: s for s in tracker.get_species()}

        assert tracker.species_count == 2
        assert second["Tiny Browsers"].id == first_ids["Tiny Browsers"]
        assert second["Giant Hunters"].id == first_ids["Giant Hunters"]
        assert second["Giant Hunters"].trend == "declining"
        assert second["Giant Hunters"].history == [(50, 2), (100, 1)]

    def test_extinction(self, rng):
        tracker = SpeciesTracker()
        herbivores = _population(rng, HERBIVORE, 3)
        carnivores = _population(rng, CARNIVORE, 3)
        tracker.update(herbivores + carnivores, tick=1)

        for c in carnivores:
            c.die("test")
        tracker.update(herbivores + carnivores, tick=2)

        assert tracker.species_count == 1
        extinct = [s for s in tracker.get_species(include_extinct=True) if s.extinct]
        assert len(extinct) == 1
        assert extinct[0].name == "Giant Hunters"
        assert extinct[0].population == 0

    def test_dominant_species(self, rng):
        tracker = SpeciesTracker()
        assert tracker.dominant_species() is None
        tracker.update(_population(rng, HERBIVORE, 5) + _population(rng, CARNIVORE, 2), tick=1)
        dominant = tracker.dominant_species()
        assert dominant.name == "Tiny Browsers"
        assert dominant.population == 5
        assert dominant.description == "Dark Green; Small, Herbivore"
