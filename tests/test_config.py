"""Tests for QSwarm configuration helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from qswarm import config
from qswarm.exceptions import InvalidConfigError
from qswarm.metrics import DRAWDOWN_BASES


def test_build_settings_defaults(tmp_path):
    settings = config.build_settings(base_dir=tmp_path)

    assert settings.export_dir == tmp_path.resolve() / "exports"
    assert settings.particles == config.DEFAULT_PARTICLES
    assert settings.iterations == config.DEFAULT_ITERATIONS
    assert settings.convergence_threshold == config.DEFAULT_CONVERGENCE_THRESHOLD
    assert settings.max_workers == 1
    assert settings.drawdown_basis == "returns"


def test_build_settings_from_environment(monkeypatch, tmp_path):
    data_dir = tmp_path / "custom_data"
    log_dir = tmp_path / "custom_logs"
    monkeypatch.setenv("QSWARM_DATA_DIR", str(data_dir))
    monkeypatch.setenv("QSWARM_LOG_DIR", str(log_dir))
    monkeypatch.setenv("QSWARM_LOG_LEVEL", "debug")
    monkeypatch.setenv("QSWARM_PARTICLES", "40")
    monkeypatch.setenv("QSWARM_ITERATIONS", "250")
    monkeypatch.setenv("QSWARM_CONVERGENCE_THRESHOLD", "0")
    monkeypatch.setenv("QSWARM_MAX_WORKERS", "4")
    monkeypatch.setenv("QSWARM_DRAWDOWN_BASIS", "Equity")

    settings = config.build_settings()

    assert settings.data_dir == data_dir.resolve()
    assert settings.log_dir == log_dir.expanduser()
    assert settings.log_level == "debug"
    assert settings.particles == 40
    assert settings.iterations == 250
    assert settings.convergence_threshold == 0.0
    assert settings.max_workers == 4
    assert settings.drawdown_basis == "equity"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("QSWARM_PARTICLES", "many"),
        ("QSWARM_ITERATIONS", "0"),
        ("QSWARM_MAX_WORKERS", "-2"),
        ("QSWARM_CONVERGENCE_THRESHOLD", "-1"),
        ("QSWARM_CONVERGENCE_THRESHOLD", "nan"),
        ("QSWARM_DRAWDOWN_BASIS", "log"),
    ],
)
def test_invalid_environment_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(InvalidConfigError):
        config.build_settings()


def test_get_settings_returns_cached_instance(tmp_path, monkeypatch):
    monkeypatch.setenv("QSWARM_DATA_DIR", str(tmp_path))
    first = config.get_settings()
    second = config.get_settings()
    assert first is second
    assert isinstance(first.data_dir, Path)


def test_ensure_directories_create_all(tmp_path, monkeypatch):
    monkeypatch.setenv("QSWARM_LOG_DIR", str(tmp_path / "logs"))
    settings = config.build_settings(base_dir=tmp_path / "data")
    for path in (settings.export_dir, settings.log_dir):
        assert not path.exists()

    settings.ensure_directories()

    for path in (settings.export_dir, settings.log_dir):
        assert path.exists()


@pytest.mark.parametrize("basis", DRAWDOWN_BASES)
def test_drawdown_basis_accepts_every_metrics_basis(monkeypatch, basis):
    monkeypatch.setenv("QSWARM_DRAWDOWN_BASIS", basis.upper())
    assert config.build_settings().drawdown_basis == basis


def test_settings_share_metrics_drawdown_bases():
    assert config.DRAWDOWN_BASES is DRAWDOWN_BASES
