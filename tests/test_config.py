import logging

import pytest
from pydantic import ValidationError

from agents.squad_agent.config import SquadConfig
from infra.logger import configure_logging


def test_defaults_match_tuned_values(config):
    assert config.kill_secure_hp == 100
    assert config.influence_refresh_ticks == 3
    assert config.sticky_ticks == 40
    assert config.tower_charge_threshold == 0.8
    assert config.max_cost == 254


def test_config_is_frozen_and_strict(config):
    with pytest.raises(ValidationError):
        config.runner_count = 5
    with pytest.raises(ValidationError):
        SquadConfig(unknown_knob=1)
    with pytest.raises(ValidationError):
        SquadConfig(max_cost=255)


def test_with_overrides_validates(config):
    tweaked = config.with_overrides(runner_count=1, retreat_hp_ratio=0.2)
    assert tweaked.runner_count == 1
    assert tweaked.retreat_hp_ratio == 0.2
    assert config.runner_count == 2
    with pytest.raises(ValidationError):
        config.with_overrides(retreat_hp_ratio=1.5)


def test_from_env_reads_prefixed_variables(monkeypatch):
    monkeypatch.setenv("SQUAD_RUNNER_COUNT", "0")
    monkeypatch.setenv("SQUAD_VANGUARD_FIGHTS_TO_DEATH", "true")
    monkeypatch.setenv("SQUAD_KILL_SECURE_HP", "150")

    loaded = SquadConfig.from_env(kill_secure_hp=120)

    assert loaded.runner_count == 0
    assert loaded.vanguard_fights_to_death is True
    assert loaded.kill_secure_hp == 120


def test_configure_logging_quiets_decision_modules(tmp_path):
    logfile = tmp_path / "squad.log"
    configure_logging("info", logfile=logfile)
    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("agents.squad_agent").level == logging.INFO

    configure_logging("DEBUG", logfile=None)
    assert logging.getLogger("agents.squad_agent").level == logging.NOTSET
    assert logfile.exists()
