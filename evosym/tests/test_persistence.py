"""Tests for checksummed save files."""

import json

import numpy as np
import pytest

from evosym.creature import Creature
from evosym.exceptions import PersistenceError
from evosym.network import NeuralNetwork
from evosym.persistence import (
    KIND_BRAIN,
    KIND_POPULATION,
    compute_checksum,
    load_brain,
    load_population,
    load_population_metadata,
    read_envelope,
    save_brain,
    save_population,
    write_envelope,
)


class TestEnvelope:
    def test_checksum_ignores_key_order(self):
        assert compute_checksum({'a': 1, 'b': [1, 2]}) == compute_checksum({'b': [1, 2], 'a': 1})

    def test_envelope_fields(self, tmp_path):
        path = tmp_path / "thing.json"
        write_envelope(KIND_BRAIN, {'x': 1}, path)
        envelope = json.loads(path.read_text())
        assert envelope['format_version'] == 1
        assert envelope['kind'] == KIND_BRAIN
        assert envelope['checksum'] == compute_checksum({'x': 1})

    def test_missing_file(self, tmp_path):
        with pytest.raises(PersistenceError):
            read_envelope(tmp_path / "nope.json")

    def test_not_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json at all")
        with pytest.raises(PersistenceError):
            read_envelope(path)

    def test_tampered_payload(self, tmp_path):
        path = tmp_path / "brain.json"
        write_envelope(KIND_BRAIN, {'value': 1}, path)
        envelope = json.loads(path.read_text())
        envelope['payload']['value'] = 2
        path.write_text(json.dumps(envelope))

        with pytest.raises(PersistenceError, match="Checksum"):
            read_envelope(path)

    def test_unsupported_version(self, tmp_path):
        path = tmp_path / "old.json"
        write_envelope(KIND_BRAIN, {}, path)
        envelope = json.loads(path.read_text())
        envelope['format_version'] = 99
        path.write_text(json.dumps(envelope))

        with pytest.raises(PersistenceError, match="version"):
            read_envelope(path)

    def test_wrong_kind(self, tmp_path):
        path = tmp_path / "pop.json"
        write_envelope(KIND_POPULATION, {'creatures': []}, path)
        with pytest.raises(PersistenceError):
            load_brain(path)

    def test_backups_rotate(self, tmp_path):
        path = tmp_path / "save.json"
        for value in range(4):
            write_envelope(KIND_BRAIN, {'v': value}, path, create_backup=True, max_backups=2)

        assert read_envelope(path)['payload'] == {'v': 3}
        assert read_envelope(tmp_path / "save.json.backup1")['payload'] == {'v': 2}
        assert read_envelope(tmp_path / "save.json.backup2")['payload'] == {'v': 1}
        assert not (tmp_path / "save.json.backup3").exists()


class TestBrains:
    @pytest.mark.parametrize("filename", ["brain.json", "brain.json.gz"])
    def test_round_trip_is_bit_identical(self, rng, tmp_path, filename):
        brain = NeuralNetwork([14, 8, 5], ["tanh", "sigmoid"], rng=rng)
        path = save_brain(brain, tmp_path / filename)
        restored = load_brain(path)

        for _ in range(5):
            x = rng.uniform(-1, 1, 14)
            assert np.array_equal(restored.process(x), brain.process(x))

    def test_gzip_is_compressed(self, rng, tmp_path):
        path = tmp_path / "brain.json.gz"
        save_brain(NeuralNetwork([3, 2], rng=rng), path)
        assert path.read_bytes()[:2] == b'\x1f\x8b'

    def test_non_numeric_weight_in_brain(self, rng, tmp_path):
        payload = NeuralNetwork([2, 1], rng=rng).to_dict()
        payload['layers'][0]['neurons'][0]['weights'] = ['abc', 0.5]
        path = tmp_path / "brain.json"
        write_envelope(KIND_BRAIN, payload, path)
        with pytest.raises(PersistenceError):
            load_brain(path)

    def test_invalid_brain_payload(self, tmp_path):
        path = tmp_path / "brain.json"
        write_envelope(KIND_BRAIN, {'architecture': [3]}, path)
        with pytest.raises(PersistenceError):
            load_brain(path)


class TestPopulations:
    def test_round_trip(self, rng, tmp_path):
        creatures = [Creature(rng=rng) for _ in range(3)]
        creatures[1].die("old age")
        path = save_population(creatures, tmp_path / "pop.json", metadata={'tick': 12})

        restored = load_population(path, rng=rng)
        assert [c.id for c in restored] == [c.id for c in creatures]
        assert [c.is_alive for c in restored] == [True, False, True]
        assert restored[0].genetics == creatures[0].genetics
        assert load_population_metadata(path) == {'tick': 12}

    def test_invalid_creature(self, tmp_path):
        path = tmp_path / "pop.json"
        write_envelope(KIND_POPULATION, {'creatures': [{'id': 'creature_0'}]}, path)
        with pytest.raises(PersistenceError):
            load_population(path)
