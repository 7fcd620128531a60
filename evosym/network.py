"""
Neural Network - Feed-forward brains for creatures

Small fully-connected networks evolved by mutation and crossover rather
than trained. Every neuron keeps its own weight vector so rules can be
hand-wired into specific connections and individual neurons can be
inspected after a forward pass.

STRUCTURE:
1. Neuron - weighted sum + bias + activation
2. Layer - neurons sharing one input vector
3. NeuralNetwork - layers folded left to right

USAGE:
    from evosym.network import NeuralNetwork, create_creature_brain

    brain = create_creature_brain(14, 5, complexity="simple", rng=rng)
    outputs = brain.process(sensors)

    child = NeuralNetwork.crossover(brain_a, brain_b, rng=rng)
    child.mutate(rate=0.1, strength=0.2, rng=rng)

    restored = NeuralNetwork.from_json(child.to_json())
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .activations import Activation, get_activation, resolve_activation
from .exceptions import (
    DegenerateNetworkError,
    IndexOutOfRangeError,
    NoForwardPassError,
    ShapeMismatchError,
)
from .rng import ensure_rng


WEIGHT_LIMIT = 5.0

ActivationSpec = Union[str, Activation]


# =============================================================================
# NEURON
# =============================================================================

class Neuron:
    """
    A single unit: activation(sum(inputs * weights) + bias).

    The last inputs and outputs are kept for introspection.
    """

    def __init__(self, num_inputs: int, activation: ActivationSpec = Activation.SIGMOID,
                 weights: Optional[Sequence[float]] = None, bias: Optional[float] = None,
                 rng: Optional[np.random.Generator] = None):
        if num_inputs < 1:
            raise DegenerateNetworkError(f"Neuron needs at least one input, got {num_inputs}")

        self.activation, self._activation_fn = get_activation(activation)

        if weights is None or bias is None:
            rng = ensure_rng(rng)

        if weights is None:
            self.weights = rng.uniform(-1.0, 1.0, num_inputs)
        else:
            self.weights = np.array(weights, dtype=np.float64)
            if self.weights.shape != (num_inputs,):
                raise ShapeMismatchError(
                    f"Neuron expects {num_inputs} weights, got {self.weights.size}")

        self.bias = float(rng.uniform(-1.0, 1.0)) if bias is None else float(bias)

        # Introspection
        self.last_inputs: Optional[np.ndarray] = None
        self.last_raw_output = 0.0
        self.last_output = 0.0

    @property
    def num_inputs(self) -> int:
        return self.weights.size

    @property
    def activation_name(self) -> str:
        return self.activation.value

    def process(self, inputs: Sequence[float]) -> float:
        x = np.array(inputs, dtype=np.float64)
        if x.shape != self.weights.shape:
            raise ShapeMismatchError(
                f"Neuron expects {self.weights.size} inputs, got {x.size}")

        raw = float(np.dot(x, self.weights) + self.bias)
        output = self._activation_fn(raw)

        self.last_inputs = x
        self.last_raw_output = raw
        self.last_output = output
        return output

    def get_weight(self, index: int) -> float:
        self._check_index(index)
        return float(self.weights[index])

    def set_weight(self, index: int, value: float):
        self._check_index(index)
        self.weights[index] = value

    def add_weight(self, index: int, delta: float):
        self._check_index(index)
        self.weights[index] += delta

    def set_weights(self, weights: Sequence[float]):
        new_weights = np.array(weights, dtype=np.float64)
        if new_weights.shape != self.weights.shape:
            raise ShapeMismatchError(
                f"Neuron expects {self.weights.size} weights, got {new_weights.size}")
        self.weights = new_weights

    def set_bias(self, bias: float):
        self.bias = float(bias)

    def mutate(self, rate: float, strength: float, rng: Optional[np.random.Generator] = None):
        """
        Perturb each weight and the bias with probability `rate` by a
        uniform amount in [-strength, strength], clamped to +-WEIGHT_LIMIT.
        """
        if rate <= 0 or strength <= 0:
            return
        rng = ensure_rng(rng)

        mask = rng.random(self.weights.size) < rate
        deltas = rng.uniform(-strength, strength, self.weights.size)
        perturbed = np.clip(self.weights + deltas, -WEIGHT_LIMIT, WEIGHT_LIMIT)
        self.weights = np.where(mask, perturbed, self.weights)

        if rng.random() < rate:
            delta = rng.uniform(-strength, strength)
            self.bias = float(np.clip(self.bias + delta, -WEIGHT_LIMIT, WEIGHT_LIMIT))

    def clone(self) -> 'Neuron':
        return Neuron(self.num_inputs, self.activation,
                      weights=self.weights.copy(), bias=self.bias)

    def describe(self) -> str:
        return (f"Neuron({self.num_inputs} inputs, {self.activation_name}, "
                f"bias={self.bias:.3f}, |w|avg={np.mean(np.abs(self.weights)):.3f}, "
                f"last={self.last_output:.3f})")

    def to_dict(self) -> dict:
        return {
            'weights': self.weights.tolist(),
            'bias': self.bias,
            'activationName': self.activation.value,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Neuron':
        try:
            weights = list(d['weights'])
            return cls(len(weights), d.get('activationName', Activation.SIGMOID.value),
                       weights=weights, bias=d['bias'])
        except DegenerateNetworkError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise DegenerateNetworkError(f"Malformed neuron data: {e}") from e

    def _check_index(self, index: int):
        if not 0 <= index < self.weights.size:
            raise IndexOutOfRangeError(
                f"Weight index {index} out of range for neuron with {self.weights.size} inputs")

    def __repr__(self) -> str:
        return f"Neuron(inputs={self.num_inputs}, activation={self.activation_name})"


# =============================================================================
# LAYER
# =============================================================================

@dataclass
class LayerStats:
    """Weight statistics for a single layer."""
    neuron_count: int
    input_size: int
    output_size: int
    total_weights: int
    avg_weight: float
    avg_bias: float
    weight_range: Tuple[float, float]
    bias_range: Tuple[float, float]


class Layer:
    """Neurons that all read the same input vector."""

    def __init__(self, input_size: int, output_size: int,
                 activation: ActivationSpec = Activation.SIGMOID,
                 neurons: Optional[List[Neuron]] = None,
                 rng: Optional[np.random.Generator] = None):
        if input_size < 1 or output_size < 1:
            raise DegenerateNetworkError(
                f"Layer sizes must be positive, got {input_size}x{output_size}")

        self.input_size = input_size
        self.output_size = output_size

        if neurons is None:
            self.activation = resolve_activation(activation)
            rng = ensure_rng(rng)
            self.neurons = [Neuron(input_size, self.activation, rng=rng)
                            for _ in range(output_size)]
        else:
            if len(neurons) != output_size:
                raise ShapeMismatchError(
                    f"Layer expects {output_size} neurons, got {len(neurons)}")
            for i, neuron in enumerate(neurons):
                if neuron.num_inputs != input_size:
                    raise ShapeMismatchError(
                        f"Neuron {i} has {neuron.num_inputs} inputs, layer expects {input_size}")
            self.neurons = list(neurons)
            self.activation = self.neurons[0].activation

        self.last_output: Optional[np.ndarray] = None

    def process(self, inputs: Sequence[float]) -> np.ndarray:
        x = np.asarray(inputs, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise ShapeMismatchError(
                f"Layer expects {self.input_size} inputs, got {x.size}")

        output = np.array([neuron.process(x) for neuron in self.neurons])
        self.last_output = output
        return output.copy()

    def mutate(self, rate: float, strength: float, rng: Optional[np.random.Generator] = None):
        rng = ensure_rng(rng)
        for neuron in self.neurons:
            neuron.mutate(rate, strength, rng)

    def clone(self) -> 'Layer':
        return Layer(self.input_size, self.output_size, self.activation,
                     neurons=[n.clone() for n in self.neurons])

    # -------------------------------------------------------------------------
    # Direct addressing (hand-wired rules)
    # -------------------------------------------------------------------------

    def get_neuron(self, index: int) -> Neuron:
        if not 0 <= index < len(self.neurons):
            raise IndexOutOfRangeError(
                f"Neuron index {index} out of range for layer of {len(self.neurons)}")
        return self.neurons[index]

    def set_neuron(self, index: int, neuron: Neuron):
        self.get_neuron(index)
        if neuron.num_inputs != self.input_size:
            raise ShapeMismatchError(
                f"Neuron has {neuron.num_inputs} inputs, layer expects {self.input_size}")
        self.neurons[index] = neuron

    def set_weight(self, from_input: int, to_neuron: int, weight: float):
        self.get_neuron(to_neuron).set_weight(from_input, weight)

    def add_weight(self, from_input: int, to_neuron: int, delta: float):
        self.get_neuron(to_neuron).add_weight(from_input, delta)

    def set_bias(self, neuron_index: int, bias: float):
        self.get_neuron(neuron_index).set_bias(bias)

    def add_bias(self, neuron_index: int, delta: float):
        neuron = self.get_neuron(neuron_index)
        neuron.set_bias(neuron.bias + delta)

    def weight_matrix(self) -> np.ndarray:
        """Weights as an (output_size, input_size) array copy."""
        return np.stack([n.weights for n in self.neurons])

    @classmethod
    def crossover(cls, parent1: 'Layer', parent2: 'Layer',
                  rng: Optional[np.random.Generator] = None) -> 'Layer':
        """
        Build a child layer neuron by neuron.

        Each neuron position is copied whole from one parent, chosen
        with p=0.5.
        """
        if (parent1.input_size, parent1.output_size) != (parent2.input_size, parent2.output_size):
            raise ShapeMismatchError(
                f"Cannot cross layers {parent1.input_size}x{parent1.output_size} and "
                f"{parent2.input_size}x{parent2.output_size}")
        rng = ensure_rng(rng)

        neurons = []
        for n1, n2 in zip(parent1.neurons, parent2.neurons):
            source = n1 if rng.random() < 0.5 else n2
            neurons.append(source.clone())

        return cls(parent1.input_size, parent1.output_size, parent1.activation, neurons=neurons)

    def get_stats(self) -> LayerStats:
        weights = self.weight_matrix()
        biases = np.array([n.bias for n in self.neurons])
        return LayerStats(
            neuron_count=len(self.neurons),
            input_size=self.input_size,
            output_size=self.output_size,
            total_weights=int(weights.size),
            avg_weight=float(weights.mean()),
            avg_bias=float(biases.mean()),
            weight_range=(float(weights.min()), float(weights.max())),
            bias_range=(float(biases.min()), float(biases.max())),
        )

    def to_dict(self) -> dict:
        return {
            'inputSize': self.input_size,
            'outputSize': self.output_size,
            'neurons': [n.to_dict() for n in self.neurons],
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Layer':
        try:
            neurons = [Neuron.from_dict(n) for n in d['neurons']]
            return cls(int(d['inputSize']), int(d['outputSize']), neurons=neurons)
        except DegenerateNetworkError:
            raise
        except ShapeMismatchError as e:
            raise DegenerateNetworkError(f"Inconsistent layer data: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise DegenerateNetworkError(f"Malformed layer data: {e}") from e

    def __repr__(self) -> str:
        return f"Layer({self.input_size}->{self.output_size}, {self.activation.value})"


# =============================================================================
# NETWORK INTROSPECTION
# =============================================================================

@dataclass
class NetworkStats:
    """Aggregate weight statistics for a network."""
    architecture: List[int]
    total_layers: int
    total_neurons: int
    total_weights: int
    avg_weight: float
    weight_range: Tuple[float, float]
    layer_stats: List[LayerStats] = field(default_factory=list)


@dataclass
class ActivityTrace:
    """Recorded values of the most recent forward pass."""
    input: List[float]
    layer_outputs: List[List[float]]
    output: List[float]


@dataclass
class LayerActivation:
    """Activation summary of one layer during the last forward pass."""
    layer_index: int
    max: float
    min: float
    avg: float
    most_active: int
    least_active: int
    pattern: List[float]


@dataclass
class DecisionAnalysis:
    """Which outputs dominated the last decision, layer by layer."""
    layer_activations: List[LayerActivation]
    dominant_output: int
    confidence: float


# =============================================================================
# NEURAL NETWORK
# =============================================================================

def _validate_sizes(layer_sizes: Sequence[int]) -> List[int]:
    sizes = [int(s) for s in layer_sizes]
    if len(sizes) < 2:
        raise DegenerateNetworkError(
            f"Network needs at least an input and an output size, got {sizes}")
    if any(s < 1 for s in sizes):
        raise DegenerateNetworkError(f"Layer sizes must be positive, got {sizes}")
    return sizes


def _resolve_activations(activations: Union[ActivationSpec, Sequence[ActivationSpec]],
                         num_layers: int) -> List[Activation]:
    # A single activation applies to every layer; a list needs one per layer
    if isinstance(activations, (str, Activation)):
        return [resolve_activation(activations)] * num_layers
    activation_list = list(activations)
    if len(activation_list) < num_layers:
        raise DegenerateNetworkError(
            f"Need {num_layers} activations, got {len(activation_list)}")
    return [resolve_activation(a) for a in activation_list[:num_layers]]


class NeuralNetwork:
    """
    Feed-forward network described by an architecture vector
    [input_size, hidden..., output_size].
    """

    def __init__(self, layer_sizes: Sequence[int],
                 activations: Union[ActivationSpec, Sequence[ActivationSpec]] = Activation.SIGMOID,
                 layers: Optional[List[Layer]] = None,
                 rng: Optional[np.random.Generator] = None):
        sizes = _validate_sizes(layer_sizes)
        self.layer_sizes = sizes
        num_layers = len(sizes) - 1
        self.activations = _resolve_activations(activations, num_layers)

        if layers is None:
            rng = ensure_rng(rng)
            self.layers = [Layer(sizes[i], sizes[i + 1], self.activations[i], rng=rng)
                           for i in range(num_layers)]
        else:
            if len(layers) != num_layers:
                raise DegenerateNetworkError(
                    f"Architecture {sizes} needs {num_layers} layers, got {len(layers)}")
            for i, layer in enumerate(layers):
                if (layer.input_size, layer.output_size) != (sizes[i], sizes[i + 1]):
                    raise DegenerateNetworkError(
                        f"Layer {i} is {layer.input_size}x{layer.output_size}, "
                        f"architecture expects {sizes[i]}x{sizes[i + 1]}")
            self.layers = list(layers)

        # Activity trace of the last forward pass
        self.last_input: Optional[np.ndarray] = None
        self.last_layer_outputs: List[np.ndarray] = []
        self.last_output: Optional[np.ndarray] = None

    @classmethod
    def zeros(cls, layer_sizes: Sequence[int],
              activations: Union[ActivationSpec, Sequence[ActivationSpec]] = Activation.SIGMOID
              ) -> 'NeuralNetwork':
        """Network of the given shape with every weight and bias set to 0."""
        sizes = _validate_sizes(layer_sizes)
        resolved = _resolve_activations(activations, len(sizes) - 1)
        layers = []
        for i, activation in enumerate(resolved):
            neurons = [Neuron(sizes[i], activation, weights=np.zeros(sizes[i]), bias=0.0)
                       for _ in range(sizes[i + 1])]
            layers.append(Layer(sizes[i], sizes[i + 1], activation, neurons=neurons))
        return cls(sizes, resolved, layers=layers)

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def process(self, inputs: Sequence[float]) -> np.ndarray:
        x = np.array(inputs, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise ShapeMismatchError(
                f"Network expects {self.input_size} inputs, got {x.size}")

        layer_outputs = []
        current = x
        for layer in self.layers:
            current = layer.process(current)
            layer_outputs.append(current)

        self.last_input = x
        self.last_layer_outputs = layer_outputs
        self.last_output = current
        return current.copy()

    def mutate(self, rate: float = 0.1, strength: float = 0.1,
               rng: Optional[np.random.Generator] = None):
        rng = ensure_rng(rng)
        for layer in self.layers:
            layer.mutate(rate, strength, rng)

    def clone(self) -> 'NeuralNetwork':
        return NeuralNetwork(self.layer_sizes, self.activations,
                             layers=[layer.clone() for layer in self.layers])

    @classmethod
    def crossover(cls, parent1: 'NeuralNetwork', parent2: 'NeuralNetwork',
                  rng: Optional[np.random.Generator] = None) -> 'NeuralNetwork':
        """
        Cross two same-shaped networks layer by layer.

        Each corresponding layer pair goes through Layer.crossover, so
        every neuron position independently comes from one parent.
        """
        if parent1.layer_sizes != parent2.layer_sizes:
            raise ShapeMismatchError(
                f"Cannot cross architectures {parent1.layer_sizes} and {parent2.layer_sizes}")
        rng = ensure_rng(rng)

        layers = [Layer.crossover(l1, l2, rng) for l1, l2 in zip(parent1.layers, parent2.layers)]
        return cls(parent1.layer_sizes, parent1.activations, layers=layers)

    # -------------------------------------------------------------------------
    # Addressing
    # -------------------------------------------------------------------------

    def get_architecture(self) -> List[int]:
        return list(self.layer_sizes)

    def get_layer(self, index: int) -> Layer:
        if not 0 <= index < len(self.layers):
            raise IndexOutOfRangeError(
                f"Layer index {index} out of range for network with {len(self.layers)} layers")
        return self.layers[index]

    def set_weight(self, layer_index: int, from_input: int, to_neuron: int, weight: float):
        self.get_layer(layer_index).set_weight(from_input, to_neuron, weight)

    def set_bias(self, layer_index: int, neuron_index: int, bias: float):
        self.get_layer(layer_index).set_bias(neuron_index, bias)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_stats(self) -> NetworkStats:
        all_weights = np.concatenate([layer.weight_matrix().ravel() for layer in self.layers])
        return NetworkStats(
            architecture=self.get_architecture(),
            total_layers=len(self.layers),
            total_neurons=sum(self.layer_sizes[1:]),
            total_weights=int(all_weights.size),
            avg_weight=float(all_weights.mean()),
            weight_range=(float(all_weights.min()), float(all_weights.max())),
            layer_stats=[layer.get_stats() for layer in self.layers],
        )

    def get_activity_trace(self) -> ActivityTrace:
        self._require_forward_pass()
        return ActivityTrace(
            input=self.last_input.tolist(),
            layer_outputs=[out.tolist() for out in self.last_layer_outputs],
            output=self.last_output.tolist(),
        )

    def analyze_decision(self) -> DecisionAnalysis:
        """
        Summarize the last forward pass.

        Returns:
            Per-layer activation summary plus the index and value of
            the strongest output

        Raises:
            NoForwardPassError: if process() has never been called
        """
        self._require_forward_pass()

        layer_activations = []
        for i, out in enumerate(self.last_layer_outputs):
            layer_activations.append(LayerActivation(
                layer_index=i,
                max=float(out.max()),
                min=float(out.min()),
                avg=float(out.mean()),
                most_active=int(np.argmax(out)),
                least_active=int(np.argmin(out)),
                pattern=out.tolist(),
            ))

        dominant = int(np.argmax(self.last_output))
        return DecisionAnalysis(
            layer_activations=layer_activations,
            dominant_output=dominant,
            confidence=float(self.last_output[dominant]),
        )

    def describe(self) -> str:
        stats = self.get_stats()
        lines = [
            f"NeuralNetwork {' -> '.join(str(s) for s in self.layer_sizes)}",
            f"  weights: {stats.total_weights}, avg {stats.avg_weight:.3f}, "
            f"range [{stats.weight_range[0]:.3f}, {stats.weight_range[1]:.3f}]",
        ]
        for i, layer in enumerate(self.layers):
            lstats = stats.layer_stats[i]
            lines.append(f"  layer {i}: {layer.input_size}->{layer.output_size} "
                         f"{layer.activation.value}, avg bias {lstats.avg_bias:.3f}")
        return "\n".join(lines)

    def _require_forward_pass(self):
        if self.last_output is None:
            raise NoForwardPassError("No forward pass has been run on this network")

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            'architecture': self.get_architecture(),
            'layers': [layer.to_dict() for layer in self.layers],
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'NeuralNetwork':
        """Rebuild a network, validating every layer against the architecture."""
        try:
            architecture = [int(s) for s in d['architecture']]
            layers_data = list(d['layers'])
        except (KeyError, TypeError, ValueError) as e:
            raise DegenerateNetworkError(f"Malformed network data: {e}") from e

        if len(architecture) < 2:
            raise DegenerateNetworkError(f"Architecture too short: {architecture}")
        if len(layers_data) != len(architecture) - 1:
            raise DegenerateNetworkError(
                f"Architecture {architecture} needs {len(architecture) - 1} layers, "
                f"got {len(layers_data)}")

        layers = []
        for i, layer_data in enumerate(layers_data):
            layer = Layer.from_dict(layer_data)
            if (layer.input_size, layer.output_size) != (architecture[i], architecture[i + 1]):
                raise DegenerateNetworkError(
                    f"Layer {i} is {layer.input_size}x{layer.output_size}, "
                    f"architecture expects {architecture[i]}x{architecture[i + 1]}")
            layers.append(layer)

        return cls(architecture, [layer.activation for layer in layers], layers=layers)

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, s: str) -> 'NeuralNetwork':
        try:
            data = json.loads(s)
        except json.JSONDecodeError as e:
            raise DegenerateNetworkError(f"Invalid network JSON: {e}") from e
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return f"NeuralNetwork({self.layer_sizes})"


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

COMPLEXITY_HIDDEN_SIZES: Dict[str, List[int]] = {
    'simple': [8],
    'medium': [12, 8],
    'complex': [16, 12, 8],
}


def create_feedforward(input_size: int, hidden_sizes: Sequence[int], output_size: int,
                       hidden_activation: ActivationSpec = Activation.SIGMOID,
                       output_activation: ActivationSpec = Activation.SIGMOID,
                       rng: Optional[np.random.Generator] = None) -> NeuralNetwork:
    """Random network with one activation for hidden layers and one for the output."""
    sizes = [input_size, *hidden_sizes, output_size]
    activations = [hidden_activation] * len(hidden_sizes) + [output_activation]
    return NeuralNetwork(sizes, activations, rng=rng)


def create_creature_brain(sensor_count: int, action_count: int, complexity: str = 'simple',
                          rng: Optional[np.random.Generator] = None) -> NeuralNetwork:
    """
    Random creature brain of a preset depth.

    Args:
        sensor_count: Number of sensor inputs
        action_count: Number of action outputs
        complexity: "simple", "medium" or "complex"
        rng: Random source

    Returns:
        A tanh network (signed outputs) with the preset hidden layers
    """
    if complexity not in COMPLEXITY_HIDDEN_SIZES:
        raise DegenerateNetworkError(f"Unknown brain complexity: {complexity!r}")
    return create_feedforward(sensor_count, COMPLEXITY_HIDDEN_SIZES[complexity], action_count,
                              hidden_activation=Activation.TANH,
                              output_activation=Activation.TANH, rng=rng)
