"""Tests for engine configuration loading."""

import pytest
from pydantic import ValidationError

from fplh2h.config import (
    get_captain_multiplier,
    get_formation_limits,
    get_round_luck_weights,
    get_season_luck_divisors,
    get_season_luck_weights,
    get_zero_sum_tolerance,
)
from fplh2h.constants import Position
from fplh2h.schemas import EngineConfig


def config_data(**overrides):
    data = {
        'formation_limits': {'GK': [1, 1], 'DEF': [3, 5], 'MID': [2, 5], 'FWD': [1, 3]},
        'season_luck_weights': {'variance': 0.4, 'rank': 0.3, 'schedule': 0.2, 'chip': 0.1},
        'season_luck_divisors': {'variance': 10, 'rank': 1, 'schedule': 5, 'chip': 3},
        'round_luck_weights': {'variance': 0.6, 'rank': 0.4},
    }
    data.update(overrides)
    return data


class TestPackagedConfig:
    """Tests for the bundled engine_config.json."""

    def test_formation_limits(self, config):
        """Test limits are keyed by Position."""
        limits = get_formation_limits(config)
        assert limits[Position.GK] == (1, 1)
        assert limits[Position.DEF] == (3, 5)
        assert limits[Position.MID] == (2, 5)
        assert limits[Position.FWD] == (1, 3)

    def test_captain_multipliers(self, config):
        """Test captain and triple captain multipliers."""
        assert get_captain_multiplier(False, config) == 2
        assert get_captain_multiplier(True, config) == 3

    def test_luck_weights(self, config):
        """Test season and round weights."""
        assert get_season_luck_weights(config) == {'variance': 0.4, 'rank': 0.3, 'schedule': 0.2, 'chip': 0.1}
        assert get_season_luck_divisors(config)['schedule'] == 5.0
        assert get_round_luck_weights(config) == {'variance': 0.6, 'rank': 0.4}

    def test_defaults(self, config):
        """Test tolerance, bonus tiers and bench goalkeeper slot."""
        assert get_zero_sum_tolerance(config) == 0.01
        assert config.bonus_tiers == [3, 2, 1]
        assert config.bench_goalkeeper_slot == 12
        assert config.chip_luck_points_per_chip == 7.0


class TestConfigValidation:
    """Tests for EngineConfig validation."""

    def test_minimal(self):
        """Test defaults fill in optional settings."""
        config = EngineConfig.model_validate(config_data())
        assert config.completion_buffer_hours == 10.0
        assert set(config.chip_luck_chips) == {'wildcard', 'free_hit', 'bench_boost', 'triple_captain'}

    def test_missing_component(self):
        """Test all four season components are required."""
        data = config_data(season_luck_weights={'variance': 0.5, 'rank': 0.5})
        with pytest.raises(ValidationError):
            EngineConfig.model_validate(data)

    def test_non_positive_divisor(self):
        """Test divisors must be positive."""
        data = config_data(season_luck_divisors={'variance': 10, 'rank': 0, 'schedule': 5, 'chip': 3})
        with pytest.raises(ValidationError):
            EngineConfig.model_validate(data)

    def test_bad_formation(self):
        """Test a max below its min is rejected."""
        data = config_data(formation_limits={'GK': [1, 1], 'DEF': [5, 3], 'MID': [2, 5], 'FWD': [1, 3]})
        with pytest.raises(ValidationError):
            EngineConfig.model_validate(data)

    def test_unknown_chip(self):
        """Test chip luck chips must be known."""
        with pytest.raises(ValidationError):
            EngineConfig.model_validate(config_data(chip_luck_chips=['assistant_manager']))

    def test_unknown_key(self):
        """Test unknown settings are rejected."""
        with pytest.raises(ValidationError):
            EngineConfig.model_validate(config_data(luck_mode='fast'))
