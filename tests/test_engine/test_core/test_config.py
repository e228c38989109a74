import pytest

from engine.core.config import EngineConfig
from engine.core.errors import ConfigurationError


def test_defaults():
    config = EngineConfig()
    assert config.base_interval_ms == 2000.0
    assert config.min_wait_ms == 50.0
    assert config.transition_delay_ms == 2000.0
    assert config.default_speed == 1
    assert config.carry_over_health


def test_from_dict_round_trip():
    config = EngineConfig.from_dict({"base_interval_ms": 500, "default_speed": 2})
    assert config.base_interval_ms == 500
    assert config.default_speed == 2
    assert EngineConfig.from_dict(config.to_dict()).to_dict() == config.to_dict()


def test_unknown_key_rejected():
    with pytest.raises(ConfigurationError):
        EngineConfig.from_dict({"base_interval": 500})


@pytest.mark.parametrize("kwargs", [
    {"base_interval_ms": -1},
    {"min_wait_ms": -5},
    {"transition_delay_ms": -1},
    {"default_speed": 4},
])
def test_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        EngineConfig(**kwargs)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        EngineConfig(default_speed=0)
