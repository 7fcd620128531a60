"""
Bootstrap Brains - Generation-indexed brain synthesis

Random networks almost never survive long enough to reproduce, so the
first creatures get hand-wired survival rules instead. As generations
accumulate the template is mutated harder, and past generation 50 brains
come purely from sexual recombination of the parents.

STRATEGIES:
1. Founder (generation 0) - fixed 14-8-5 network with six wired rules
2. Early (1-50) - fresh founder, mutation ramping with generation
3. Evolutionary (>50) - parent crossover, mutation scaled by genetic stability
4. Emergency - population collapse recovery from the best survivor

USAGE:
    from evosym.bootstrap import BootstrapBrainFactory

    brain = BootstrapBrainFactory.create_brain_for_generation(
        generation, genetics, parent_brains=[mother.brain, father.brain], rng=rng)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .activations import Activation
from .exceptions import DegenerateNetworkError
from .genetics import Genetics
from .network import NeuralNetwork
from .rng import ensure_rng


# =============================================================================
# SENSOR AND ACTION LAYOUT
# =============================================================================

SENSOR_FOOD_DISTANCE = 0
SENSOR_FOOD_TYPE = 1
SENSOR_CARRION_DISTANCE = 2
SENSOR_CARRION_FRESHNESS = 3
SENSOR_PREDATOR_DISTANCE = 4
SENSOR_PREY_DISTANCE = 5
SENSOR_ENERGY = 6
SENSOR_HEALTH = 7
SENSOR_AGE = 8
SENSOR_POPULATION = 9
SENSOR_VISION_FORWARD = 10
SENSOR_VISION_LEFT = 11
SENSOR_VISION_RIGHT = 12
SENSOR_VISION_BACK = 13
SENSOR_COUNT = 14

ACTION_MOVE_X = 0
ACTION_MOVE_Y = 1
ACTION_EAT = 2
ACTION_ATTACK = 3
ACTION_REPRODUCE = 4
ACTION_COUNT = 5

HIDDEN_SIZE = 8
FOUNDER_ARCHITECTURE = [SENSOR_COUNT, HIDDEN_SIZE, ACTION_COUNT]
FOUNDER_ACTIVATIONS = [Activation.TANH, Activation.TANH]

NEUTRAL_SENSOR_VALUE = 0.5

# Hidden units carrying each group of rules (three per rule)
EAT_UNITS = (0, 1, 2)
REPRODUCE_UNITS = (3, 4, 5)
MOVE_UNITS = (5, 6, 7)

EARLY_GENERATION_LIMIT = 50
FOUNDER_MUTATION_RATE = 1.0
FOUNDER_MUTATION_STRENGTH = 0.05
EMERGENCY_MUTATION_RATE = 0.5
EMERGENCY_MUTATION_STRENGTH = 0.1


# =============================================================================
# STRATEGY CLASSIFICATION
# =============================================================================

class BrainStrategy(Enum):
    """How a brain is synthesized for a given generation."""
    FOUNDER = "founder"
    EARLY = "early"
    EVOLUTIONARY = "evolutionary"
    EMERGENCY = "emergency"


def classify_generation(generation: int) -> BrainStrategy:
    """Pick the synthesis strategy for a generation number."""
    if generation < 0:
        raise ValueError(f"Generation must be non-negative, got {generation}")
    if generation == 0:
        return BrainStrategy.FOUNDER
    if generation <= EARLY_GENERATION_LIMIT:
        return BrainStrategy.EARLY
    return BrainStrategy.EVOLUTIONARY


@dataclass
class StrategyInfo:
    """Human-readable summary of a generation's strategy."""
    strategy: BrainStrategy
    name: str
    description: str
    generation: int
    expected_survival_rate: float


def get_bootstrap_strategy(generation: int) -> StrategyInfo:
    strategy = classify_generation(generation)
    if strategy is BrainStrategy.FOUNDER:
        return StrategyInfo(strategy, "Founder Generation",
                            "Hand-wired minimum viable brains with basic survival instincts",
                            generation, 0.4)
    if strategy is BrainStrategy.EARLY:
        return StrategyInfo(strategy, "Early Evolution",
                            "Survival template with increasing mutation for diversity",
                            generation, 0.3 + (generation / EARLY_GENERATION_LIMIT) * 0.2)
    return StrategyInfo(strategy, "Full Evolution",
                        "Sexual reproduction with crossover and mutation",
                        generation, 0.2)


# =============================================================================
# RULE WIRING
# =============================================================================

def apply_rule(network: NeuralNetwork, sensor_weights: Dict[int, float],
               action_weights: Dict[int, float], hidden_units: Sequence[int],
               trigger_bias: float = 0.0, response_strength: float = 1.0):
    """
    Wire a sensor->action rule through a set of hidden units.

    Each hidden unit receives the trigger weights and bias; each output
    neuron receives the response weight from each of those units. Values
    are added to what is already there, so rules sharing a unit sum.

    Args:
        network: Network with exactly one hidden layer
        sensor_weights: Input index -> trigger weight
        action_weights: Output index -> response weight
        hidden_units: Hidden neurons encoding the rule
        trigger_bias: Added to each hidden unit's bias
        response_strength: Multiplier on every response weight
    """
    if network.layer_count != 2:
        raise DegenerateNetworkError(
            f"Rules need a single hidden layer, network has {network.layer_count} layers")

    hidden = network.get_layer(0)
    output = network.get_layer(1)

    for unit in hidden_units:
        for sensor, weight in sensor_weights.items():
            hidden.add_weight(sensor, unit, weight)
        hidden.add_bias(unit, trigger_bias)
        for action, weight in action_weights.items():
            output.add_weight(unit, action, weight * response_strength)


@dataclass
class FounderRule:
    """One hand-wired survival rule."""
    name: str
    sensor_weights: Dict[int, float]
    trigger_bias: float
    hidden_units: Tuple[int, ...]
    action_weights: Dict[int, float]
    response_strength: float = 1.0
    output_biases: Dict[int, float] = field(default_factory=dict)


def founder_rules(genetics: Genetics, heading: float) -> List[FounderRule]:
    """
    The six founder rules.

    Hunger, mating, flee and exploration are silent at their resting input
    (sensors at 0.5, or "nothing seen" for the predator rule). Scavenging
    and foraging keep a positive resting trigger, so a founder on neutral
    senses still leans towards eating and, through the shared hidden unit,
    reproducing. Movement rules push along `heading`, since the sensors
    carry no direction.
    """
    cos_h, sin_h = float(np.cos(heading)), float(np.sin(heading))
    diet = max(genetics.plant_preference, genetics.meat_preference)

    return [
        FounderRule(
            name="hunger_feeding",
            sensor_weights={SENSOR_ENERGY: -2.0, SENSOR_FOOD_DISTANCE: -2.0},
            trigger_bias=2.0,
            hidden_units=EAT_UNITS,
            action_weights={ACTION_EAT: 1.0},
        ),
        FounderRule(
            name="mating",
            sensor_weights={SENSOR_ENERGY: 2.0, SENSOR_AGE: 2.0},
            trigger_bias=-2.0,
            hidden_units=REPRODUCE_UNITS,
            action_weights={ACTION_REPRODUCE: 1.0},
        ),
        FounderRule(
            name="flee",
            # Negative weight on distance: closer predator, stronger response
            sensor_weights={SENSOR_PREDATOR_DISTANCE: -3.0},
            trigger_bias=3.0,
            hidden_units=MOVE_UNITS,
            action_weights={ACTION_MOVE_X: cos_h, ACTION_MOVE_Y: sin_h},
            response_strength=1.5,
        ),
        FounderRule(
            name="scavenging",
            sensor_weights={SENSOR_ENERGY: -1.0, SENSOR_CARRION_DISTANCE: -2.0,
                            SENSOR_CARRION_FRESHNESS: 1.0},
            trigger_bias=2.0,
            hidden_units=EAT_UNITS,
            action_weights={ACTION_EAT: 1.0},
        ),
        FounderRule(
            name="exploration",
            sensor_weights={SENSOR_POPULATION: 1.0, SENSOR_VISION_FORWARD: 1.0},
            trigger_bias=-1.0,
            hidden_units=MOVE_UNITS,
            action_weights={ACTION_MOVE_X: cos_h, ACTION_MOVE_Y: sin_h},
            response_strength=0.8 * genetics.curiosity,
            output_biases={ACTION_MOVE_X: 0.5 * genetics.curiosity * cos_h,
                           ACTION_MOVE_Y: 0.5 * genetics.curiosity * sin_h},
        ),
        FounderRule(
            name="foraging",
            sensor_weights={SENSOR_FOOD_DISTANCE: -1.0, SENSOR_FOOD_TYPE: 1.0},
            trigger_bias=0.5,
            hidden_units=MOVE_UNITS,
            action_weights={ACTION_MOVE_X: cos_h, ACTION_MOVE_Y: sin_h},
            response_strength=0.8 * diet,
        ),
    ]


def wire_founder_template(genetics: Genetics, heading: float) -> NeuralNetwork:
    """Blank founder network with all rules applied and no noise."""
    network = NeuralNetwork.zeros(FOUNDER_ARCHITECTURE, FOUNDER_ACTIVATIONS)
    output = network.get_layer(1)

    for rule in founder_rules(genetics, heading):
        apply_rule(network, rule.sensor_weights, rule.action_weights, rule.hidden_units,
                   rule.trigger_bias, rule.response_strength)
        for action, bias in rule.output_biases.items():
            output.add_bias(action, bias)

    return network


# =============================================================================
# BOOTSTRAP FACTORY
# =============================================================================

class BootstrapBrainFactory:
    """Brain synthesis keyed by generation."""

    @staticmethod
    def create_brain_for_generation(generation: int, genetics: Genetics,
                                    parent_brains: Optional[Sequence[NeuralNetwork]] = None,
                                    rng: Optional[np.random.Generator] = None) -> NeuralNetwork:
        """
        Build a brain for a creature of the given generation.

        Args:
            generation: Creature generation (0 for founders)
            genetics: The creature's genetics
            parent_brains: Parent networks, needed past the early phase
            rng: Random source

        Returns:
            A new network owned by the caller
        """
        rng = ensure_rng(rng)
        strategy = classify_generation(generation)

        if strategy is BrainStrategy.FOUNDER:
            return BootstrapBrainFactory.create_founder_brain(genetics, rng)
        if strategy is BrainStrategy.EARLY:
            return BootstrapBrainFactory.create_early_generation_brain(genetics, generation, rng)
        return BootstrapBrainFactory.create_evolutionary_brain(
            genetics, list(parent_brains or []), generation, rng)

    @staticmethod
    def create_founder_brain(genetics: Genetics,
                             rng: Optional[np.random.Generator] = None) -> NeuralNetwork:
        rng = ensure_rng(rng)
        heading = float(rng.uniform(0.0, 2.0 * np.pi))
        brain = wire_founder_template(genetics, heading)

        # Light noise so founders are never bit-identical
        brain.mutate(FOUNDER_MUTATION_RATE, FOUNDER_MUTATION_STRENGTH, rng)

        logger.trace(f"[Bootstrap] Founder brain wired, heading {heading:.2f}")
        return brain

    @staticmethod
    def create_early_generation_brain(genetics: Genetics, generation: int,
                                      rng: Optional[np.random.Generator] = None) -> NeuralNetwork:
        """Fresh founder with mutation pressure ramping over generations 0-50."""
        rng = ensure_rng(rng)
        brain = BootstrapBrainFactory.create_founder_brain(genetics, rng)

        progress = min(max(generation, 0), EARLY_GENERATION_LIMIT) / EARLY_GENERATION_LIMIT
        rate = 0.6 + progress * 0.3
        strength = 0.05 + progress * 0.15
        brain.mutate(rate, strength, rng)
        return brain

    @staticmethod
    def create_evolutionary_brain(genetics: Genetics, parent_brains: List[NeuralNetwork],
                                  generation: int = EARLY_GENERATION_LIMIT + 1,
                                  rng: Optional[np.random.Generator] = None) -> NeuralNetwork:
        """
        Parent crossover followed by stability-scaled mutation.

        Falls back to the early-generation path when fewer than two
        parent brains are available.
        """
        rng = ensure_rng(rng)
        if len(parent_brains) < 2:
            logger.debug(f"[Bootstrap] Generation {generation} has {len(parent_brains)} "
                         f"parent brains, using early template")
            return BootstrapBrainFactory.create_early_generation_brain(
                genetics, min(generation, EARLY_GENERATION_LIMIT), rng)

        brain = NeuralNetwork.crossover(parent_brains[0], parent_brains[1], rng)

        stability = genetic_stability(genetics)
        brain.mutate(0.3 * (2.0 - stability), 0.2 * (2.0 - stability), rng)
        return brain


def genetic_stability(genetics: Genetics) -> float:
    """Efficient, long-lived genetics mutate more gently."""
    return (genetics.efficiency + genetics.lifespan / 1000.0) / 2.0


class EmergencyBrainFactory:
    """Brains for repopulating after a population collapse."""

    @staticmethod
    def create_emergency_brain(best_survivors: Sequence[NeuralNetwork], genetics: Genetics,
                               rng: Optional[np.random.Generator] = None) -> NeuralNetwork:
        """
        Clone and lightly mutate the best survivor's brain.

        Args:
            best_survivors: Survivor brains ordered best first (may be empty)
            genetics: Genetics of the creature receiving the brain
            rng: Random source

        Returns:
            A founder brain when nobody survived, else a mutated clone
        """
        rng = ensure_rng(rng)
        if not best_survivors:
            logger.debug("[Bootstrap] No survivors, emergency brain from founder template")
            return BootstrapBrainFactory.create_founder_brain(genetics, rng)

        brain = best_survivors[0].clone()
        brain.mutate(EMERGENCY_MUTATION_RATE, EMERGENCY_MUTATION_STRENGTH, rng)
        return brain


# =============================================================================
# RETENTION ANALYSIS
# =============================================================================

@dataclass
class RetentionReport:
    """How much of the founder wiring a brain still carries."""
    retention: float
    wired_connections: int
    preserved_connections: int
    description: str


def analyze_bootstrap_retention(brain: NeuralNetwork, tolerance: float = 0.5) -> RetentionReport:
    """
    Compare a brain's rule-trigger weights against the founder template.

    A wired hidden-layer connection counts as preserved when its sign
    matches the template and its magnitude is within `tolerance`
    (relative). Brains of a different shape retain nothing.
    """
    template = wire_founder_template(Genetics(), 0.0).get_layer(0).weight_matrix()
    wired = template != 0.0
    total = int(wired.sum())

    if brain.get_architecture() != FOUNDER_ARCHITECTURE:
        return RetentionReport(0.0, total, 0, "Different architecture - no founder wiring")

    actual = brain.get_layer(0).weight_matrix()
    same_sign = np.sign(actual) == np.sign(template)
    close = np.abs(actual - template) <= tolerance * np.abs(template)
    preserved = int((wired & same_sign & close).sum())
    retention = preserved / total if total else 0.0

    if retention > 0.7:
        description = "Strong bootstrap influence - retains survival instincts"
    elif retention > 0.3:
        description = "Partially evolved - some survival instincts remain"
    else:
        description = "Heavily evolved - mostly natural selection patterns"

    return RetentionReport(retention, total, preserved, description)
