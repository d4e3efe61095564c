from dataclasses import fields

import pytest

from timeflow.config import DEFAULT_DURATION_MINUTES, Settings, configure_logging, load_settings


def test_defaults_without_environment():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.default_duration_minutes == DEFAULT_DURATION_MINUTES
    assert settings.weights.completion + settings.weights.narrative == 100


def test_environment_overrides():
    settings = load_settings(
        {
            "TIMEFLOW_DEFAULT_DURATION_MINUTES": "45",
            "TIMEFLOW_GENERATION_TIMEOUT": "2.5",
            "TIMEFLOW_BUFFER_MINUTES": "",
        }
    )
    assert settings.default_duration_minutes == 45
    assert settings.generation_timeout == 2.5
    assert settings.buffer_minutes == 15


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_invalid_values_name_the_variable(value):
    with pytest.raises(ValueError, match="TIMEFLOW_ANALYSIS_TIMEOUT"):
        load_settings({"TIMEFLOW_ANALYSIS_TIMEOUT": value})


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")
    configure_logging(env={"TIMEFLOW_LOG_LEVEL": "debug"})


def test_every_scalar_setting_can_come_from_the_environment():
    names = [item.name for item in fields(Settings) if item.name != "weights"]
    settings = load_settings({"TIMEFLOW_" + name.upper(): "7" for name in names})
    assert all(getattr(settings, name) == 7 for name in names)
