"""Tests for Neuron, Layer and NeuralNetwork."""

import json

import numpy as np
import pytest

from evosym.activations import Activation, get_activation
from evosym.exceptions import (
    DegenerateNetworkError,
    IndexOutOfRangeError,
    NoForwardPassError,
    ShapeMismatchError,
)
from evosym.network import (
    WEIGHT_LIMIT,
    Layer,
    NeuralNetwork,
    Neuron,
    create_creature_brain,
    create_feedforward,
)


def _all_parameters(network):
    params = []
    for layer in network.layers:
        for neuron in layer.neurons:
            params.extend(neuron.weights.tolist())
            params.append(neuron.bias)
    return params


class TestActivations:
    def test_lookup_by_wire_name(self):
        kind, fn = get_activation("leakyRelu")
        assert kind is Activation.LEAKY_RELU
        assert fn(-10.0) == pytest.approx(-0.1)
        assert fn(2.0) == 2.0

    def test_sigmoid_saturates(self):
        _, sigmoid = get_activation(Activation.SIGMOID)
        assert sigmoid(-1000.0) == 0.0
        assert sigmoid(1000.0) == 1.0
        assert sigmoid(0.0) == pytest.approx(0.5)

    def test_unknown_name_rejected(self):
        with pytest.raises(DegenerateNetworkError):
            get_activation("softmax")


class TestNeuron:
    def test_process_computes_weighted_sum(self):
        neuron = Neuron(3, Activation.LINEAR, weights=[1.0, -2.0, 0.5], bias=0.25)
        assert neuron.process([1.0, 1.0, 2.0]) == pytest.approx(0.25)
        assert neuron.last_raw_output == pytest.approx(0.25)
        assert neuron.last_inputs.tolist() == [1.0, 1.0, 2.0]

    def test_wrong_input_width_fails(self):
        neuron = Neuron(3, rng=np.random.default_rng(0))
        with pytest.raises(ShapeMismatchError):
            neuron.process([1.0, 2.0])

    def test_wrong_weight_count_fails(self):
        with pytest.raises(ShapeMismatchError):
            Neuron(3, weights=[1.0, 2.0], bias=0.0)

    def test_zero_inputs_is_degenerate(self):
        with pytest.raises(DegenerateNetworkError):
            Neuron(0)

    def test_weight_index_checked(self):
        neuron = Neuron(2, weights=[0.0, 0.0], bias=0.0)
        with pytest.raises(IndexOutOfRangeError):
            neuron.set_weight(2, 1.0)
        with pytest.raises(IndexOutOfRangeError):
            neuron.get_weight(-1)

    def test_mutation_stays_within_limit(self, rng):
        neuron = Neuron(4, Activation.TANH, weights=[4.99, -4.99, 0.0, 0.0], bias=4.99)
        for _ in range(50):
            neuron.mutate(1.0, 2.0, rng)
        assert np.all(np.abs(neuron.weights) <= WEIGHT_LIMIT)
        assert abs(neuron.bias) <= WEIGHT_LIMIT

    def test_clone_is_independent(self, rng):
        neuron = Neuron(3, Activation.TANH, rng=rng)
        copy = neuron.clone()
        copy.set_weight(0, 3.0)
        assert neuron.get_weight(0) != 3.0
        assert copy.activation is Activation.TANH


class TestLayer:
    def test_process_width_checked(self, rng):
        layer = Layer(3, 2, rng=rng)
        with pytest.raises(ShapeMismatchError):
            layer.process([1.0, 2.0, 3.0, 4.0])

    def test_neurons_must_share_width(self, rng):
        neurons = [Neuron(3, rng=rng), Neuron(2, rng=rng)]
        with pytest.raises(ShapeMismatchError):
            Layer(3, 2, neurons=neurons)

    def test_weight_matrix_shape(self, rng):
        layer = Layer(4, 3, rng=rng)
        assert layer.weight_matrix().shape == (3, 4)

    def test_set_weight_addresses_input_and_neuron(self, rng):
        layer = Layer(4, 3, rng=rng)
        layer.set_weight(2, 1, 0.75)
        assert layer.get_neuron(1).get_weight(2) == 0.75
        assert layer.weight_matrix()[1, 2] == 0.75

    def test_neuron_index_checked(self, rng):
        layer = Layer(2, 2, rng=rng)
        with pytest.raises(IndexOutOfRangeError):
            layer.get_neuron(5)

    def test_crossover_takes_whole_neurons(self, rng):
        a = Layer(3, 6, rng=rng)
        b = Layer(3, 6, rng=rng)
        child = Layer.crossover(a, b, rng)

        for i, neuron in enumerate(child.neurons):
            from_a = np.array_equal(neuron.weights, a.neurons[i].weights) and neuron.bias == a.neurons[i].bias
            from_b = np.array_equal(neuron.weights, b.neurons[i].weights) and neuron.bias == b.neurons[i].bias
            assert from_a or from_b, f"Neuron {i} is not a copy of either parent"
            assert neuron is not a.neurons[i] and neuron is not b.neurons[i]

    def test_crossover_rejects_mismatched_shapes(self, rng):
        with pytest.raises(ShapeMismatchError):
            Layer.crossover(Layer(3, 2, rng=rng), Layer(2, 2, rng=rng), rng)


class TestNeuralNetwork:
    def test_too_few_sizes_is_degenerate(self):
        with pytest.raises(DegenerateNetworkError):
            NeuralNetwork([4])

    def test_architecture(self, rng):
        net = NeuralNetwork([5, 4, 3, 2], rng=rng)
        assert net.get_architecture() == [5, 4, 3, 2]
        assert net.layer_count == 3
        assert net.input_size == 5
        assert net.output_size == 2

    def test_process_is_deterministic(self, rng):
        net = NeuralNetwork([6, 5, 3], Activation.TANH, rng=rng)
        x = rng.uniform(-1, 1, 6)
        assert np.array_equal(net.process(x), net.process(x))

    def test_process_rejects_wrong_width(self, rng):
        net = NeuralNetwork([3, 2], rng=rng)
        with pytest.raises(ShapeMismatchError):
            net.process([1.0, 2.0])

    def test_clone_produces_identical_outputs(self, rng):
        net = NeuralNetwork([6, 8, 4], [Activation.RELU, Activation.SIGMOID], rng=rng)
        clone = net.clone()
        for _ in range(5):
            x = rng.uniform(-2, 2, 6)
            assert np.array_equal(clone.process(x), net.process(x))

    def test_clone_does_not_share_weights(self, rng):
        net = NeuralNetwork([3, 2], rng=rng)
        clone = net.clone()
        clone.mutate(1.0, 1.0, rng)
        assert _all_parameters(net) != _all_parameters(clone)

    def test_mutate_with_zero_rate_is_noop(self, rng):
        net = NeuralNetwork([4, 3, 2], rng=rng)
        before = _all_parameters(net)
        net.mutate(rate=0.0, strength=1.0, rng=rng)
        assert _all_parameters(net) == before

    def test_mutate_with_zero_strength_is_noop(self, rng):
        net = NeuralNetwork([4, 3, 2], rng=rng)
        before = _all_parameters(net)
        net.mutate(rate=1.0, strength=0.0, rng=rng)
        assert _all_parameters(net) == before

    def test_full_rate_mutation_changes_everything(self, rng):
        net = NeuralNetwork([4, 3], rng=rng)
        before = _all_parameters(net)
        net.mutate(rate=1.0, strength=0.5, rng=rng)
        after = _all_parameters(net)
        assert all(b != a for b, a in zip(before, after))

    def test_json_round_trip_is_bit_identical(self, rng):
        net = NeuralNetwork([14, 8, 5], [Activation.TANH, Activation.LEAKY_RELU], rng=rng)
        restored = NeuralNetwork.from_json(net.to_json())
        for _ in range(5):
            x = rng.uniform(-1, 1, 14)
            assert np.array_equal(restored.process(x), net.process(x))

    def test_serialized_neuron_keys(self, rng):
        data = json.loads(NeuralNetwork([2, 1], Activation.TANH, rng=rng).to_json())
        assert data['architecture'] == [2, 1]
        neuron = data['layers'][0]['neurons'][0]
        assert set(neuron) == {'weights', 'bias', 'activationName'}
        assert neuron['activationName'] == "tanh"

    def test_from_dict_rejects_inconsistent_layers(self, rng):
        data = NeuralNetwork([3, 2, 1], rng=rng).to_dict()
        data['architecture'] = [3, 4, 1]
        with pytest.raises(DegenerateNetworkError):
            NeuralNetwork.from_dict(data)

    def test_from_dict_rejects_non_numeric_architecture(self):
        with pytest.raises(DegenerateNetworkError):
            NeuralNetwork.from_dict({'architecture': [2, 'x'], 'layers': []})

    @pytest.mark.parametrize("field, value", [('weights', ['abc', 0.1]), ('bias', 'abc')])
    def test_from_dict_rejects_non_numeric_parameters(self, rng, field, value):
        data = NeuralNetwork([2, 1], rng=rng).to_dict()
        data['layers'][0]['neurons'][0][field] = value
        with pytest.raises(DegenerateNetworkError):
            NeuralNetwork.from_dict(data)

    def test_from_json_rejects_garbage(self):
        with pytest.raises(DegenerateNetworkError):
            NeuralNetwork.from_json("{not json")

    def test_crossover_is_per_layer_neuron_choice(self, rng):
        # Assumed granularity: each neuron is inherited whole, chosen per layer.
        a = NeuralNetwork([4, 6, 3], rng=rng)
        b = NeuralNetwork([4, 6, 3], rng=rng)
        child = NeuralNetwork.crossover(a, b, rng)

        assert child.get_architecture() == [4, 6, 3]
        for li, layer in enumerate(child.layers):
            for ni, neuron in enumerate(layer.neurons):
                candidates = (a.layers[li].neurons[ni], b.layers[li].neurons[ni])
                assert any(np.array_equal(neuron.weights, c.weights) for c in candidates)

    def test_crossover_rejects_different_architectures(self, rng):
        with pytest.raises(ShapeMismatchError):
            NeuralNetwork.crossover(NeuralNetwork([3, 2], rng=rng), NeuralNetwork([3, 3, 2], rng=rng), rng)

    def test_layer_index_checked(self, rng):
        net = NeuralNetwork([3, 2], rng=rng)
        with pytest.raises(IndexOutOfRangeError):
            net.get_layer(1)

    def test_introspection_requires_forward_pass(self, rng):
        net = NeuralNetwork([3, 2], rng=rng)
        with pytest.raises(NoForwardPassError):
            net.analyze_decision()
        with pytest.raises(NoForwardPassError):
            net.get_activity_trace()

    def test_analyze_decision_reports_dominant_output(self):
        net = NeuralNetwork.zeros([2, 3], Activation.LINEAR)
        net.set_bias(0, 0, 0.1)
        net.set_bias(0, 1, 0.9)
        net.set_bias(0, 2, -0.4)
        net.process([0.0, 0.0])

        analysis = net.analyze_decision()
        assert analysis.dominant_output == 1
        assert analysis.confidence == pytest.approx(0.9)
        assert analysis.layer_activations[0].least_active == 2

    def test_activity_trace_records_every_layer(self, rng):
        net = NeuralNetwork([3, 4, 2], rng=rng)
        out = net.process([0.1, 0.2, 0.3])
        trace = net.get_activity_trace()
        assert len(trace.layer_outputs) == 2
        assert len(trace.layer_outputs[0]) == 4
        assert trace.output == out.tolist()

    def test_stats(self, rng):
        stats = NeuralNetwork([3, 4, 2], rng=rng).get_stats()
        assert stats.total_neurons == 6
        assert stats.total_weights == 3 * 4 + 4 * 2
        assert stats.weight_range[0] <= stats.avg_weight <= stats.weight_range[1]


class TestFactories:
    def test_create_feedforward(self, rng):
        net = create_feedforward(5, [7, 6], 2, rng=rng)
        assert net.get_architecture() == [5, 7, 6, 2]

    @pytest.mark.parametrize("complexity,expected", [
        ('simple', [14, 8, 5]),
        ('medium', [14, 12, 8, 5]),
        ('complex', [14, 16, 12, 8, 5]),
    ])
    def test_creature_brain_complexity(self, rng, complexity, expected):
        assert create_creature_brain(14, 5, complexity, rng=rng).get_architecture() == expected

    def test_unknown_complexity(self, rng):
        with pytest.raises(DegenerateNetworkError):
            create_creature_brain(14, 5, 'enormous', rng=rng)
