"""Unit tests for OperatorConfig env loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from gpu_operator.config import OperatorConfig


def test_defaults(monkeypatch):
    for var in ("GPU_OPERATOR_ASSETS_DIR", "GPU_OPERATOR_NAMESPACE", "GPU_OPERATOR_REQUEUE_DELAY_SECONDS"):
        monkeypatch.delenv(var, raising=False)

    cfg = OperatorConfig()

    assert cfg.assets_dir == Path("/opt/gpu-operator")
    assert cfg.namespace == "gpu-operator-resources"
    assert cfg.requeue_delay_seconds == 5
    assert cfg.apply_max_retries == 3


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GPU_OPERATOR_ASSETS_DIR", "/tmp/assets")
    monkeypatch.setenv("GPU_OPERATOR_REQUEUE_DELAY_SECONDS", "12")
    monkeypatch.setenv("GPU_OPERATOR_LOG_LEVEL", "DEBUG")

    cfg = OperatorConfig()

    assert cfg.assets_dir == Path("/tmp/assets")
    assert cfg.requeue_delay_seconds == 12
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize("field, value", [
    ("requeue_delay_seconds", 0),
    ("apply_max_retries", 0),
    ("poll_interval_seconds", 0),
    ("log_level", "CHATTY"),
])
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        OperatorConfig(**{field: value})
