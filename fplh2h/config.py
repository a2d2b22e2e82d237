"""Engine configuration management."""

from functools import lru_cache
from pathlib import Path

from .constants import Position
from .schemas import EngineConfig
from .utils import load_json


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    """
    Load engine configuration from fplh2h/data/engine_config.json.

    Configuration is cached after first load.

    Returns:
        EngineConfig object with validated settings

    Raises:
        FileNotFoundError: If engine_config.json doesn't exist
        ValueError: If config file has invalid structure

    Example:
        from fplh2h.config import get_config
        config = get_config()
        print(f"Zero-sum tolerance: {config.zero_sum_tolerance}")
    """
    config_path = Path(__file__).parent / 'data' / 'engine_config.json'
    return load_json(config_path, schema=EngineConfig)


def get_formation_limits(config: EngineConfig | None = None) -> dict[Position, tuple[int, int]]:
    """Get (min, max) starters per position, keyed by Position."""
    config = config or get_config()
    return {Position(pos): tuple(limits) for pos, limits in config.formation_limits.items()}


def get_captain_multiplier(triple_captain: bool, config: EngineConfig | None = None) -> int:
    """Get the captain multiplier, accounting for the triple captain chip."""
    config = config or get_config()
    return config.triple_captain_multiplier if triple_captain else config.captain_multiplier


def get_season_luck_weights(config: EngineConfig | None = None) -> dict[str, float]:
    """Get season luck index weights per component."""
    return (config or get_config()).season_luck_weights


def get_season_luck_divisors(config: EngineConfig | None = None) -> dict[str, float]:
    """Get season luck normalisation divisors per component."""
    return (config or get_config()).season_luck_divisors


def get_round_luck_weights(config: EngineConfig | None = None) -> dict[str, float]:
    """Get round luck index weights per component."""
    return (config or get_config()).round_luck_weights


def get_zero_sum_tolerance(config: EngineConfig | None = None) -> float:
    """Get the tolerance for zero-sum luck checks."""
    return (config or get_config()).zero_sum_tolerance


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file is modified during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
