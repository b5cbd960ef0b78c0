from __future__ import annotations

import json
from pathlib import Path

import pytest

from moneysync.config import DEFAULT_SYNC_COOLDOWN_SECONDS, SyncConfig, load_config


def test_defaults_without_file(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.json", environ={})

    assert config.remote_url is None
    assert config.remote_configured is False
    assert config.sync_cooldown_seconds == DEFAULT_SYNC_COOLDOWN_SECONDS


def test_file_then_env_then_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "remote_url": "https://file.example.com",
                "remote_key": "file-key",
                "db_path": str(tmp_path / "file.db"),
                "sync_cooldown_seconds": 60,
            }
        ),
        encoding="utf-8",
    )
    environ = {
        "MONEYSYNC_REMOTE_URL": "https://env.example.com",
        "MONEYSYNC_SYNC_COOLDOWN": "30",
    }

    config = load_config(config_path, environ=environ, db_path=tmp_path / "cli.db", remote_key=None)

    assert config.remote_url == "https://env.example.com"
    assert config.remote_key == "file-key"
    assert config.db_path == tmp_path / "cli.db"
    assert config.sync_cooldown_seconds == 30
    assert config.remote_configured is True


def test_config_path_from_environment(tmp_path: Path) -> None:
    config_path = tmp_path / "other.json"
    config_path.write_text(json.dumps({"remote_url": "https://x.example.com"}), encoding="utf-8")

    config = load_config(environ={"MONEYSYNC_CONFIG": str(config_path)})

    assert config.remote_url == "https://x.example.com"
    assert config.remote_configured is False


def test_invalid_cooldown_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.json", environ={"MONEYSYNC_SYNC_COOLDOWN": "soon"})
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.json", environ={"MONEYSYNC_SYNC_COOLDOWN": "-5"})


def test_repr_masks_key() -> None:
    config = SyncConfig(remote_url="https://x.example.com", remote_key="secret")

    assert "secret" not in repr(config)
    assert "***" in repr(config)
