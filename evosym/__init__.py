# EvoSym - Evolutionary Creature Simulation Engine
#
# Creatures with feedforward neural brains sense, think and act in a 2D
# world. Founders are born with hand-wired survival instincts; later
# generations inherit crossed-over, mutated brains and genetics.
#
# MODULES:
# ├── activations.py    - Activation functions by wire name
# ├── network.py        - Neuron / Layer / NeuralNetwork
# ├── genetics.py       - 14-trait genome, crossover, mutation, distance
# ├── bootstrap.py      - Founder wiring, generation-indexed brain factory
# ├── environment.py    - World contract (entities, queries, results)
# ├── creature.py       - Sense -> think -> act pipeline
# ├── world.py          - Reference in-memory environment
# ├── simulation.py     - Tick driver with emergency recovery
# ├── species.py        - Species clustering and tracking
# ├── parental_care.py  - r/K reproduction trade-offs
# ├── persistence.py    - Checksummed JSON save/load
# ├── decisions.py      - Action vector and decision tracing
# ├── quadtree.py       - Spatial index for world queries
# ├── config.py         - Tunable dataclass configs
# ├── exceptions.py     - Error hierarchy
# ├── rng.py            - Seeded numpy Generators
# └── logger_setup.py   - loguru sinks

from loguru import logger

# =============================================================================
# NEURAL NETWORKS
# =============================================================================

from .activations import (
    Activation,
    get_activation,
)

from .network import (
    Neuron,
    Layer,
    NeuralNetwork,
    LayerStats,
    NetworkStats,
    ActivityTrace,
    LayerActivation,
    DecisionAnalysis,
    create_feedforward,
    create_creature_brain,
)

# =============================================================================
# GENETICS AND BOOTSTRAP
# =============================================================================

from .genetics import (
    Genetics,
    TRAITS,
    generate_random_genetics,
    crossover_genetics,
    mutate_genetics,
    clamp_genetics,
    calculate_genetic_distance,
    describe_genetics,
    genetics_color,
)

from .bootstrap import (
    SENSOR_COUNT,
    ACTION_COUNT,
    BrainStrategy,
    BootstrapBrainFactory,
    EmergencyBrainFactory,
    apply_rule,
    classify_generation,
    get_bootstrap_strategy,
    analyze_bootstrap_retention,
)

# =============================================================================
# CREATURES AND WORLD
# =============================================================================

from .environment import (
    Vector2,
    EntityType,
    Entity,
    FoodEntity,
    Carrion,
    SpatialQuery,
    EntityQuery,
    FeedingResult,
    CombatResult,
    BoundaryShape,
    WorldBounds,
    Environment,
)

from .decisions import (
    CreatureActions,
    DecisionTrace,
    DecisionObserver,
    DecisionRecorder,
)

from .creature import (
    Creature,
    CreatureState,
    Physics,
    CreatureStats,
    SensorCache,
    is_cache_stale,
    create_offspring,
)

from .world import World, WorldStats
from .species import SpeciesTracker, SpeciesInfo
from .parental_care import (
    ReproductiveStrategy,
    ReproductionPlan,
    calculate_reproduction_strategy,
    plan_reproduction,
    estimate_lifetime_offspring,
    optimal_parental_care,
)
from .simulation import Simulation, SimulationStats

# =============================================================================
# SUPPORT
# =============================================================================

from .config import (
    CreatureConfig,
    WorldConfig,
    SimulationConfig,
    create_config,
)

from .exceptions import (
    EvoSymError,
    ShapeMismatchError,
    IndexOutOfRangeError,
    DegenerateNetworkError,
    NoForwardPassError,
    PersistenceError,
)

from .persistence import (
    save_brain,
    load_brain,
    save_population,
    load_population,
)

from .rng import make_rng, ensure_rng
from .logger_setup import setup_logger

# Silent unless the embedding application calls setup_logger()
logger.disable("evosym")

__version__ = "0.1.0"

__all__ = [
    # Neural networks
    'Activation',
    'get_activation',
    'Neuron',
    'Layer',
    'NeuralNetwork',
    'LayerStats',
    'NetworkStats',
    'ActivityTrace',
    'LayerActivation',
    'DecisionAnalysis',
    'create_feedforward',
    'create_creature_brain',

    # Genetics
    'Genetics',
    'TRAITS',
    'generate_random_genetics',
    'crossover_genetics',
    'mutate_genetics',
    'clamp_genetics',
    'calculate_genetic_distance',
    'describe_genetics',
    'genetics_color',

    # Bootstrap
    'SENSOR_COUNT',
    'ACTION_COUNT',
    'BrainStrategy',
    'BootstrapBrainFactory',
    'EmergencyBrainFactory',
    'apply_rule',
    'classify_generation',
    'get_bootstrap_strategy',
    'analyze_bootstrap_retention',

    # Environment contract
    'Vector2',
    'EntityType',
    'Entity',
    'FoodEntity',
    'Carrion',
    'SpatialQuery',
    'EntityQuery',
    'FeedingResult',
    'CombatResult',
    'BoundaryShape',
    'WorldBounds',
    'Environment',

    # Decisions
    'CreatureActions',
    'DecisionTrace',
    'DecisionObserver',
    'DecisionRecorder',

    # Creatures
    'Creature',
    'CreatureState',
    'Physics',
    'CreatureStats',
    'SensorCache',
    'is_cache_stale',
    'create_offspring',

    # World and simulation
    'World',
    'WorldStats',
    'SpeciesTracker',
    'SpeciesInfo',
    'ReproductiveStrategy',
    'ReproductionPlan',
    'calculate_reproduction_strategy',
    'plan_reproduction',
    'estimate_lifetime_offspring',
    'optimal_parental_care',
    'Simulation',
    'SimulationStats',

    # Config
    'CreatureConfig',
    'WorldConfig',
    'SimulationConfig',
    'create_config',

    # Exceptions
    'EvoSymError',
    'ShapeMismatchError',
    'IndexOutOfRangeError',
    'DegenerateNetworkError',
    'NoForwardPassError',
    'PersistenceError',

    # Persistence
    'save_brain',
    'load_brain',
    'save_population',
    'load_population',

    # Utilities
    'make_rng',
    'ensure_rng',
    'setup_logger',
]
