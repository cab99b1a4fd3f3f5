from __future__ import annotations

import pytest

from dutyroster.config import Config


def test_default_config_is_valid():
    Config().validate()


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"MAX_SLOTS_PER_PERIOD": -1}, "MAX_SLOTS_PER_PERIOD"),
        ({"MAX_SLOTS_PER_PERIOD": 2, "MAX_SLOTS_PER_WEEK": 3}, "cannot exceed"),
        ({"SOFT_WEIGHTS": {"CONTINUITY_CONFLICT": -1.0}}, "Soft weight"),
        ({"SCORE_HARD_WEIGHT": 0.0}, "monotonic"),
        ({"ENGINE": "simplex"}, "ENGINE"),
        ({"TIME_LIMIT_SEC": 0.0}, "TIME_LIMIT_SEC"),
        ({"COMMIT_RETRIES": -1}, "COMMIT_RETRIES"),
    ],
)
def test_validate_rejects(overrides, message):
    with pytest.raises(ValueError, match=message):
        Config(**overrides).validate()


def test_role_priority_puts_unknown_last():
    cfg = Config()
    assert cfg.role_priority("kreiszimmer") < cfg.role_priority("gyn")
    assert cfg.role_priority("unknown") == len(cfg.SERVICE_ROLE_PRIORITY)


def test_soft_weight_defaults_to_one():
    cfg = Config()
    assert cfg.soft_weight("ONLY_FALLBACK_CANDIDATES") == 3.0
    assert cfg.soft_weight("SOMETHING_ELSE") == 1.0
