"""
Genetics - Heritable trait vector for creatures

Fourteen independently bounded scalar traits. Founders are drawn from
narrower "viable" sub-ranges; offspring inherit a per-trait mosaic of
their parents, then mutate and are clamped back into range.

TRAITS:
- Physical: size, speed, efficiency
- Behavioral: aggression, sociability, curiosity
- Diet: plant_preference, meat_preference
- Reproduction: parental_care, maturity_age, lifespan, reproduction_cost
- Senses: vision_range, vision_acuity

USAGE:
    from evosym.genetics import generate_random_genetics, crossover_genetics, mutate_genetics

    a = generate_random_genetics(rng)
    b = generate_random_genetics(rng)
    child = mutate_genetics(crossover_genetics(a, b, rng), rng=rng)
    distance = calculate_genetic_distance(a, child)
"""

from dataclasses import asdict, dataclass, fields
from typing import Dict, List, Optional

import numpy as np

from .rng import ensure_rng


# =============================================================================
# TRAIT TABLE
# =============================================================================

@dataclass(frozen=True)
class TraitSpec:
    """Bounds and operator scales for a single trait."""
    min: float
    max: float
    founder_min: float
    founder_max: float
    mutation_scale: float = 1.0    # Multiplier on mutation strength
    distance_scale: float = 1.0    # Divisor before squaring in distance


TRAITS: Dict[str, TraitSpec] = {
    'size': TraitSpec(0.5, 2.0, 0.8, 1.2),
    'speed': TraitSpec(0.3, 1.5, 0.8, 1.2),
    'efficiency': TraitSpec(0.5, 1.5, 0.8, 1.2),
    'aggression': TraitSpec(0.0, 1.0, 0.0, 1.0),
    'sociability': TraitSpec(0.0, 1.0, 0.0, 1.0),
    'curiosity': TraitSpec(0.0, 1.0, 0.0, 1.0),
    'plant_preference': TraitSpec(0.0, 1.0, 0.3, 0.7),
    'meat_preference': TraitSpec(0.0, 1.0, 0.3, 0.7),
    'parental_care': TraitSpec(0.0, 1.0, 0.0, 1.0),
    'vision_range': TraitSpec(0.5, 2.0, 0.8, 1.2),
    'vision_acuity': TraitSpec(0.5, 1.5, 0.8, 1.2),
    'maturity_age': TraitSpec(50.0, 200.0, 80.0, 120.0, mutation_scale=20.0, distance_scale=100.0),
    'lifespan': TraitSpec(500.0, 2000.0, 800.0, 1200.0, mutation_scale=100.0, distance_scale=1000.0),
    'reproduction_cost': TraitSpec(20.0, 60.0, 30.0, 50.0, mutation_scale=10.0, distance_scale=30.0),
}

TRAIT_NAMES: List[str] = list(TRAITS)


@dataclass
class Genetics:
    """A creature's heritable traits."""
    size: float = 1.0
    speed: float = 1.0
    efficiency: float = 1.0
    aggression: float = 0.5
    sociability: float = 0.5
    curiosity: float = 0.5
    plant_preference: float = 0.5
    meat_preference: float = 0.5
    parental_care: float = 0.5
    vision_range: float = 1.0
    vision_acuity: float = 1.0
    maturity_age: float = 100.0
    lifespan: float = 1000.0
    reproduction_cost: float = 40.0

    def as_vector(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in TRAIT_NAMES], dtype=np.float64)

    @classmethod
    def from_vector(cls, values) -> 'Genetics':
        return cls(**{name: float(v) for name, v in zip(TRAIT_NAMES, values)})

    def copy(self) -> 'Genetics':
        return Genetics(**asdict(self))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> 'Genetics':
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in d.items() if k in known})


# =============================================================================
# OPERATORS
# =============================================================================

def generate_random_genetics(rng: Optional[np.random.Generator] = None) -> Genetics:
    """Founder genetics, each trait uniform within its viable sub-range."""
    rng = ensure_rng(rng)
    return Genetics(**{
        name: float(rng.uniform(spec.founder_min, spec.founder_max))
        for name, spec in TRAITS.items()
    })


def crossover_genetics(parent1: Genetics, parent2: Genetics,
                       rng: Optional[np.random.Generator] = None) -> Genetics:
    """Per-trait mosaic: each trait copied from one parent with p=0.5."""
    rng = ensure_rng(rng)
    return Genetics(**{
        name: getattr(parent1 if rng.random() < 0.5 else parent2, name)
        for name in TRAIT_NAMES
    })


def mutate_genetics(genetics: Genetics, rate: float = 0.1, strength: float = 0.1,
                    rng: Optional[np.random.Generator] = None) -> Genetics:
    """
    Mutate and clamp a copy of `genetics`.

    Args:
        genetics: Source traits (not modified)
        rate: Per-trait mutation probability
        strength: Base magnitude; each trait's delta is
            (rand - 0.5) * strength * trait mutation_scale
        rng: Random source

    Returns:
        New clamped Genetics
    """
    rng = ensure_rng(rng)
    values = {}
    for name, spec in TRAITS.items():
        value = getattr(genetics, name)
        if rng.random() < rate:
            value += (rng.random() - 0.5) * strength * spec.mutation_scale
        values[name] = value
    return clamp_genetics(Genetics(**values))


def clamp_genetics(genetics: Genetics) -> Genetics:
    """Return a copy with every trait inside its documented range."""
    return Genetics(**{
        name: float(min(spec.max, max(spec.min, getattr(genetics, name))))
        for name, spec in TRAITS.items()
    })


def calculate_genetic_distance(a: Genetics, b: Genetics) -> float:
    """Euclidean distance with wide-range traits pre-normalized."""
    total = 0.0
    for name, spec in TRAITS.items():
        diff = (getattr(a, name) - getattr(b, name)) / spec.distance_scale
        total += diff * diff
    return float(np.sqrt(total))


# =============================================================================
# DESCRIPTION
# =============================================================================

def describe_genetics(genetics: Genetics) -> str:
    """Short comma-separated label list, e.g. "Large, Fast, Carnivore"."""
    g = genetics
    traits = []

    if g.size > 1.3:
        traits.append("Large")
    elif g.size < 0.7:
        traits.append("Small")

    if g.speed > 1.2:
        traits.append("Fast")
    elif g.speed < 0.6:
        traits.append("Slow")

    # Efficiency is higher-is-better
    if g.efficiency > 1.2:
        traits.append("Efficient")
    elif g.efficiency < 0.8:
        traits.append("Inefficient")

    if g.aggression > 0.7:
        traits.append("Aggressive")
    elif g.aggression < 0.3:
        traits.append("Peaceful")

    if g.sociability > 0.7:
        traits.append("Social")
    elif g.sociability < 0.3:
        traits.append("Solitary")

    if g.curiosity > 0.7:
        traits.append("Curious")

    if g.plant_preference > 0.7 and g.meat_preference < 0.3:
        traits.append("Herbivore")
    elif g.meat_preference > 0.7 and g.plant_preference < 0.3:
        traits.append("Carnivore")
    elif g.plant_preference > 0.5 and g.meat_preference > 0.5:
        traits.append("Omnivore")

    if g.parental_care > 0.7:
        traits.append("Nurturing")
    elif g.parental_care < 0.3:
        traits.append("Prolific")

    return ", ".join(traits) if traits else "Balanced"


def genetics_color(genetics: Genetics) -> str:
    """
    HSL colour string for display.

    Hue follows diet (120 green herbivore, 60 yellow omnivore, 0 red
    carnivore), saturation follows aggression, lightness follows size.
    """
    total_diet = genetics.plant_preference + genetics.meat_preference
    if total_diet == 0:
        hue = 180.0
    else:
        meat_ratio = genetics.meat_preference / total_diet
        if meat_ratio < 0.5:
            hue = 120.0 - meat_ratio * 60.0
        else:
            hue = 60.0 - meat_ratio * 60.0
    saturation = 30.0 + genetics.aggression * 70.0
    lightness = 20.0 + ((genetics.size - 0.5) / 1.5) * 60.0
    return f"hsl({round(hue)}, {round(saturation)}%, {round(lightness)}%)"


def color_description(genetics: Genetics) -> str:
    """Plain-language colour name, e.g. "Bright Vivid Red"."""
    hue = int(genetics_color(genetics)[4:].split(',')[0])
    words = []
    if genetics.size > 1.3:
        words.append("Bright")
    elif genetics.size < 0.7:
        words.append("Dark")
    if genetics.aggression > 0.7:
        words.append("Vivid")
    elif genetics.aggression < 0.3:
        words.append("Pale")

    if 100 <= hue <= 140:
        words.append("Green")
    elif 40 <= hue < 100:
        words.append("Yellow")
    elif 0 <= hue < 40:
        words.append("Red")
    else:
        words.append("Blue")
    return " ".join(words)
