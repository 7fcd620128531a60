"""
Parental Care - r-strategy vs K-strategy Trade-offs

The parental_care gene trades offspring quantity for quality:
- r-strategy (care < 0.3): many cheap offspring, low survival
- K-strategy (care > 0.7): few expensive offspring, high survival

These functions are analytical: they estimate what a genome's strategy
yields and plan a reproduction event. The creature's own mating rule in
evosym.creature is unaffected by them.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from .genetics import Genetics
from .rng import ensure_rng


BASE_COOLDOWN = 50
BASE_SURVIVAL = 0.3
MAX_SURVIVAL = 0.85


class ReproductiveStrategy(Enum):
    R = "r-strategy"
    BALANCED = "balanced"
    K = "K-strategy"


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def classify_strategy(parental_care: float) -> ReproductiveStrategy:
    if parental_care < 0.3:
        return ReproductiveStrategy.R
    if parental_care > 0.7:
        return ReproductiveStrategy.K
    return ReproductiveStrategy.BALANCED


# =============================================================================
# OFFSPRING QUALITY
# =============================================================================

@dataclass
class OffspringQuality:
    initial_energy: float     # 25-60
    initial_health: float     # 70-95
    growth_rate: float        # 0.8-1.1
    immunity_bonus: float     # 0-0.4


def calculate_offspring_quality(parental_care: float) -> OffspringQuality:
    """Starting condition of a child raised with the given care."""
    return OffspringQuality(
        initial_energy=min(80.0, 25 + parental_care * 35),
        initial_health=min(100.0, 70 + parental_care * 25),
        growth_rate=0.8 + parental_care * 0.3,
        immunity_bonus=parental_care * 0.4,
    )


# =============================================================================
# REPRODUCTION PLANNING
# =============================================================================

@dataclass
class ReproductionPlan:
    """Deterministic shape of a genome's reproduction events."""
    parental_care: float
    offspring_count: int
    energy_cost_per_child: float
    total_energy_cost: float
    cooldown: int
    strategy: ReproductiveStrategy
    quality: OffspringQuality


def _average_care(genetics: Genetics, partner: Optional[Genetics]) -> float:
    if partner is None:
        return genetics.parental_care
    return (genetics.parental_care + partner.parental_care) / 2


def calculate_reproduction_strategy(genetics: Genetics,
                                    partner: Optional[Genetics] = None) -> ReproductionPlan:
    """
    Plan a reproduction event from the (pair-averaged) parental care.

    Args:
        genetics: Reproducing creature's genetics
        partner: Mate's genetics, averaged in when given

    Returns:
        ReproductionPlan with litter size, costs and cooldown
    """
    care = _average_care(genetics, partner)
    count = max(1, _round_half_up(2.5 - care * 1.5))
    per_child = genetics.reproduction_cost * (0.5 + care)

    return ReproductionPlan(
        parental_care=care,
        offspring_count=count,
        energy_cost_per_child=per_child,
        total_energy_cost=per_child * count,
        cooldown=_round_half_up(BASE_COOLDOWN * (0.7 + care * 0.8)),
        strategy=classify_strategy(care),
        quality=calculate_offspring_quality(care),
    )


@dataclass
class ReproductionResult:
    can_reproduce: bool
    energy_cost: float = 0.0
    offspring_count: int = 0
    offspring_energy: float = 0.0
    offspring_health: float = 0.0
    cooldown: int = 0


def plan_reproduction(genetics: Genetics, energy: float, age: float, health: float,
                      partner: Optional[Genetics] = None,
                      rng: Optional[np.random.Generator] = None) -> ReproductionResult:
    """
    Decide whether a creature can reproduce now and what it would cost.

    Needs 40-70 energy (rising with care), maturity and health above 30.
    A 30% chance adds one extra child, up to 4. The cost never takes the
    parent below 10 energy.
    """
    rng = ensure_rng(rng)
    care = _average_care(genetics, partner)

    min_energy = 40 + care * 30
    if energy < min_energy or age < genetics.maturity_age or health <= 30:
        return ReproductionResult(can_reproduce=False)

    plan = calculate_reproduction_strategy(genetics, partner)
    extra = 1 if rng.random() < 0.3 else 0
    count = max(1, min(4, plan.offspring_count + extra))

    return ReproductionResult(
        can_reproduce=True,
        energy_cost=min(plan.energy_cost_per_child * count, energy - 10),
        offspring_count=count,
        offspring_energy=plan.quality.initial_energy,
        offspring_health=plan.quality.initial_health,
        cooldown=plan.cooldown,
    )


# =============================================================================
# LIFETIME ESTIMATES
# =============================================================================

@dataclass
class SurvivalEstimate:
    survival_to_maturity: float
    description: str


def child_survival_rate(parental_care: float) -> SurvivalEstimate:
    survival = min(MAX_SURVIVAL, BASE_SURVIVAL + parental_care * 0.5)
    if survival < 0.4:
        description = "Low survival - many children lost to environment"
    elif survival < 0.6:
        description = "Moderate survival - some children reach maturity"
    else:
        description = "High survival - most children reach maturity"
    return SurvivalEstimate(survival, description)


@dataclass
class LifetimeEstimate:
    total_offspring: int
    surviving_offspring: float
    strategy: ReproductiveStrategy
    description: str


def estimate_lifetime_offspring(genetics: Genetics) -> LifetimeEstimate:
    """Expected offspring over the reproductive part of the lifespan."""
    care = genetics.parental_care
    reproductive_life = max(0.0, genetics.lifespan - genetics.maturity_age)
    interval = BASE_COOLDOWN * (0.7 + care * 0.8)

    events = int(reproductive_life // interval)
    total = events * max(1, _round_half_up(2.5 - care * 1.5))
    survival = child_survival_rate(care).survival_to_maturity

    strategy = classify_strategy(care)
    if strategy is ReproductiveStrategy.R:
        description = f"High reproduction: {total} children with basic care"
    elif strategy is ReproductiveStrategy.K:
        description = f"Quality focused: {total} children with extensive care"
    else:
        description = f"Balanced approach: {total} children with moderate care"

    return LifetimeEstimate(total, total * survival, strategy, description)


@dataclass
class StrategyComparison:
    r_estimate: LifetimeEstimate
    k_estimate: LifetimeEstimate
    prediction: str


def compare_strategies(r_genetics: Genetics, k_genetics: Genetics) -> StrategyComparison:
    r = estimate_lifetime_offspring(r_genetics)
    k = estimate_lifetime_offspring(k_genetics)

    if r.surviving_offspring > k.surviving_offspring * 1.2:
        prediction = "r-strategy likely to dominate through sheer numbers"
    elif k.surviving_offspring > r.surviving_offspring * 1.2:
        prediction = "K-strategy likely to dominate through offspring quality"
    else:
        prediction = "Strategies likely to coexist, creating species diversity"
    return StrategyComparison(r, k, prediction)


def optimal_parental_care(food_abundance: float, predation_pressure: float,
                          population_density: float, resource_stability: float) -> float:
    """
    Care level favoured by an environment (all inputs 0-1).

    Predation, instability and sparse populations favour r; scarcity,
    crowding and stable resources favour K.
    """
    r_score = (predation_pressure * 0.4 +
               (1 - resource_stability) * 0.3 +
               (1 - population_density) * 0.3)
    k_score = ((1 - food_abundance) * 0.4 +
               population_density * 0.3 +
               resource_stability * 0.3)
    total = r_score + k_score
    return k_score / total if total > 0 else 0.5
