"""Configuration loading for MoneySync."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any
import json
import os

DEFAULT_SYNC_COOLDOWN_SECONDS = 300
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10
DEFAULT_CONFIG_PATH = Path.home() / ".moneysync" / "config.json"
DEFAULT_DB_NAME = "moneysync.db"

ENV_CONFIG_PATH = "MONEYSYNC_CONFIG"
ENV_REMOTE_URL = "MONEYSYNC_REMOTE_URL"
ENV_REMOTE_KEY = "MONEYSYNC_REMOTE_KEY"
ENV_DB_PATH = "MONEYSYNC_DB_PATH"
ENV_SYNC_COOLDOWN = "MONEYSYNC_SYNC_COOLDOWN"


@dataclass(frozen=True)
class SyncConfig:
    """Settings for one app session."""

    remote_url: str | None = None
    remote_key: str | None = None
    db_path: Path = DEFAULT_CONFIG_PATH.parent / DEFAULT_DB_NAME
    sync_cooldown_seconds: int = DEFAULT_SYNC_COOLDOWN_SECONDS
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @property
    def remote_configured(self) -> bool:
        """True when both the endpoint and its key are present."""
        return bool(self.remote_url and self.remote_key)

    def __repr__(self) -> str:
        key = "***" if self.remote_key else None
        return (
            f"SyncConfig(remote_url={self.remote_url!r}, remote_key={key!r}, "
            f"db_path={str(self.db_path)!r}, "
            f"sync_cooldown_seconds={self.sync_cooldown_seconds}, "
            f"request_timeout_seconds={self.request_timeout_seconds})"
        )


def _read_config_file(config_path: Path) -> dict[str, Any]:
    """Load config file if present, else return empty config."""
    if not config_path.exists():
        return {}
    with config_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        return {}
    return payload


def _positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be an integer") from exc
    if number < 0:
        raise ValueError(f"{field_name} must not be negative")
    return number


def load_config(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
    **overrides: Any,
) -> SyncConfig:
    """Build a config from defaults, the JSON file, environment and overrides.

    Later sources win. Keyword overrides that are None are ignored.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get(ENV_CONFIG_PATH) or DEFAULT_CONFIG_PATH)
    payload = _read_config_file(path)

    config = SyncConfig()
    if payload:
        config = replace(
            config,
            remote_url=payload.get("remote_url") or config.remote_url,
            remote_key=payload.get("remote_key") or config.remote_key,
            db_path=Path(payload["db_path"]) if payload.get("db_path") else config.db_path,
            sync_cooldown_seconds=_positive_int(
                payload.get("sync_cooldown_seconds", config.sync_cooldown_seconds),
                "sync_cooldown_seconds",
            ),
            request_timeout_seconds=_positive_int(
                payload.get("request_timeout_seconds", config.request_timeout_seconds),
                "request_timeout_seconds",
            ),
        )

    if env.get(ENV_REMOTE_URL):
        config = replace(config, remote_url=env[ENV_REMOTE_URL])
    if env.get(ENV_REMOTE_KEY):
        config = replace(config, remote_key=env[ENV_REMOTE_KEY])
    if env.get(ENV_DB_PATH):
        config = replace(config, db_path=Path(env[ENV_DB_PATH]))
    if env.get(ENV_SYNC_COOLDOWN):
        config = replace(
            config,
            sync_cooldown_seconds=_positive_int(env[ENV_SYNC_COOLDOWN], ENV_SYNC_COOLDOWN),
        )

    explicit = {key: value for key, value in overrides.items() if value is not None}
    if "db_path" in explicit:
        explicit["db_path"] = Path(explicit["db_path"])
    if explicit:
        config = replace(config, **explicit)
    return config
