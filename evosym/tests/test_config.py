"""Tests for configuration dataclasses."""

import pytest

from evosym.config import CreatureConfig, SimulationConfig, WorldConfig, create_config


class TestConfig:
    def test_defaults(self):
        cfg = CreatureConfig()
        assert (cfg.eat_threshold, cfg.attack_threshold, cfg.reproduce_threshold) == (0.5, 0.7, 0.3)
        assert WorldConfig().shape == "circular"
        assert SimulationConfig().species_threshold == 0.3

    def test_create_config_overrides(self):
        cfg = create_config(WorldConfig, max_population=50, shape="rectangular")
        assert cfg.max_population == 50
        assert cfg.shape == "rectangular"
        assert cfg.target_population == WorldConfig().target_population

    def test_create_config_rejects_unknown_fields(self):
        with pytest.raises(TypeError):
            create_config(CreatureConfig, not_a_field=1)

    def test_dict_round_trip_ignores_unknown_keys(self):
        data = SimulationConfig(seed=5, initial_population=12).to_dict()
        data['legacy_option'] = True
        restored = SimulationConfig.from_dict(data)
        assert restored == SimulationConfig(seed=5, initial_population=12)
