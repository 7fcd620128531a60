"""Tests for the genetics model."""

import pytest

from evosym.genetics import (
    TRAITS,
    Genetics,
    calculate_genetic_distance,
    clamp_genetics,
    color_description,
    crossover_genetics,
    describe_genetics,
    generate_random_genetics,
    genetics_color,
    mutate_genetics,
)


def _within_ranges(genetics, founder=False):
    for name, spec in TRAITS.items():
        value = getattr(genetics, name)
        low, high = (spec.founder_min, spec.founder_max) if founder else (spec.min, spec.max)
        if not low <= value <= high:
            return False
    return True


class TestGeneration:
    def test_fourteen_traits(self):
        assert len(TRAITS) == 14
        assert len(Genetics().as_vector()) == 14

    def test_founders_use_viable_subranges(self, rng):
        for _ in range(100):
            assert _within_ranges(generate_random_genetics(rng), founder=True)

    def test_seeded_generation_is_reproducible(self):
        from evosym.rng import make_rng
        assert generate_random_genetics(make_rng(7)) == generate_random_genetics(make_rng(7))


class TestCrossover:
    def test_child_is_a_mosaic(self, rng):
        a = generate_random_genetics(rng)
        b = generate_random_genetics(rng)
        child = crossover_genetics(a, b, rng)
        for name in TRAITS:
            assert getattr(child, name) in (getattr(a, name), getattr(b, name)), \
                f"{name} was blended instead of inherited"

    def test_both_parents_contribute(self, rng):
        a = Genetics(**{name: spec.min for name, spec in TRAITS.items()})
        b = Genetics(**{name: spec.max for name, spec in TRAITS.items()})
        from_a = 0
        for _ in range(20):
            child = crossover_genetics(a, b, rng)
            from_a += sum(1 for name in TRAITS if getattr(child, name) == getattr(a, name))
        assert 0 < from_a < 20 * len(TRAITS)


class TestMutation:
    def test_zero_rate_keeps_values(self, rng):
        g = generate_random_genetics(rng)
        assert mutate_genetics(g, rate=0.0, strength=10.0, rng=rng) == g

    def test_result_is_clamped(self, rng):
        g = Genetics(**{name: spec.max for name, spec in TRAITS.items()})
        for _ in range(20):
            g = mutate_genetics(g, rate=1.0, strength=5.0, rng=rng)
            assert _within_ranges(g)

    def test_source_not_modified(self, rng):
        g = Genetics()
        mutate_genetics(g, rate=1.0, strength=1.0, rng=rng)
        assert g == Genetics()

    def test_wide_traits_move_further(self, rng):
        lifespan_moves = []
        size_moves = []
        for _ in range(50):
            g = mutate_genetics(Genetics(), rate=1.0, strength=0.5, rng=rng)
            lifespan_moves.append(abs(g.lifespan - 1000.0))
            size_moves.append(abs(g.size - 1.0))
        assert max(lifespan_moves) > max(size_moves) * 10


class TestClamp:
    def test_out_of_range_values(self):
        clamped = clamp_genetics(Genetics(size=5.0, speed=-1.0, lifespan=99999.0, aggression=2.0))
        assert clamped.size == 2.0
        assert clamped.speed == 0.3
        assert clamped.lifespan == 2000.0
        assert clamped.aggression == 1.0

    def test_idempotent(self):
        once = clamp_genetics(Genetics(size=5.0, maturity_age=10.0))
        assert clamp_genetics(once) == once


class TestDistance:
    def test_self_distance_is_zero(self, rng):
        g = generate_random_genetics(rng)
        assert calculate_genetic_distance(g, g) == 0.0

    def test_symmetric(self, rng):
        a = generate_random_genetics(rng)
        b = generate_random_genetics(rng)
        assert calculate_genetic_distance(a, b) == calculate_genetic_distance(b, a)

    def test_wide_traits_are_normalized(self):
        base = Genetics()
        assert calculate_genetic_distance(base, Genetics(lifespan=1100.0)) == pytest.approx(0.1)
        assert calculate_genetic_distance(base, Genetics(maturity_age=110.0)) == pytest.approx(0.1)
        assert calculate_genetic_distance(base, Genetics(reproduction_cost=43.0)) == pytest.approx(0.1)
        assert calculate_genetic_distance(base, Genetics(size=1.1)) == pytest.approx(0.1)


class TestDescription:
    def test_balanced_default(self):
        assert describe_genetics(Genetics()) == "Balanced"

    def test_labels(self):
        g = Genetics(size=1.5, speed=1.3, efficiency=1.3, aggression=0.9,
                     plant_preference=0.1, meat_preference=0.9)
        labels = describe_genetics(g).split(", ")
        assert labels[:4] == ["Large", "Fast", "Efficient", "Aggressive"]
        assert "Carnivore" in labels

    def test_colour_follows_diet(self):
        herbivore = Genetics(plant_preference=1.0, meat_preference=0.0)
        carnivore = Genetics(plant_preference=0.0, meat_preference=1.0)
        assert genetics_color(herbivore).startswith("hsl(120,")
        assert genetics_color(carnivore).startswith("hsl(0,")
        assert color_description(herbivore).endswith("Green")
        assert color_description(carnivore).endswith("Red")
