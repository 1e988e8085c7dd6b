"""
Configuration validation and loading utilities for twit_client.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Sequence

from dotenv import dotenv_values

from twit_client.exceptions import ConfigError

CREDENTIAL_KEYS = (
    "consumer_key",
    "consumer_secret",
    "access_token",
    "access_token_secret",
)

# config values required for app-only auth; user auth needs all four
REQUIRED_FOR_APP_AUTH = CREDENTIAL_KEYS[:2]
REQUIRED_FOR_USER_AUTH = CREDENTIAL_KEYS

ENV_VAR_MAP = {
    "consumer_key": "TWITTER_CONSUMER_KEY",
    "consumer_secret": "TWITTER_CONSUMER_SECRET",
    "access_token": "TWITTER_ACCESS_TOKEN",
    "access_token_secret": "TWITTER_ACCESS_TOKEN_SECRET",
    "app_only_auth": "TWITTER_APP_ONLY_AUTH",
    "timeout_ms": "TWITTER_TIMEOUT_MS",
    "trusted_cert_fingerprints": "TWITTER_TRUSTED_CERT_FINGERPRINTS",
}

_TRUTHY = {"1", "true", "yes", "on"}


def validate_config(config: Any) -> Mapping[str, Any]:
    """
    Check that ``config`` holds the credentials its auth mode requires.

    Returns:
        The same mapping, unchanged.

    Raises:
        ConfigError: when the config is not a mapping, ``timeout_ms`` is not
            numeric, or a required credential is missing.
    """

    if not isinstance(config, Mapping):
        raise ConfigError(f"config must be a mapping, got {type(config).__name__}")

    timeout_ms = config.get("timeout_ms")
    if timeout_ms is not None and not _is_numeric(timeout_ms):
        raise ConfigError(f"Twit config `timeout_ms` must be a Number. Got: {timeout_ms!r}.")

    if config.get("app_only_auth"):
        auth_type, required_keys = "app-only auth", REQUIRED_FOR_APP_AUTH
    else:
        auth_type, required_keys = "user auth", REQUIRED_FOR_USER_AUTH

    for key in required_keys:
        if not config.get(key):
            raise ConfigError(f"Twit config must include `{key}` when using {auth_type}.")

    return config


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


@dataclass(slots=True)
class ClientConfig:
    """Validated client configuration for user or app-only auth."""

    consumer_key: str | None = None
    consumer_secret: str | None = None
    access_token: str | None = None
    access_token_secret: str | None = None
    app_only_auth: bool = False
    timeout_ms: float | None = None
    trusted_cert_fingerprints: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, data: Any) -> "ClientConfig":
        validate_config(data)
        timeout_ms = data.get("timeout_ms")
        fingerprints = data.get("trusted_cert_fingerprints") or ()
        if isinstance(fingerprints, str):
            fingerprints = [item for item in fingerprints.split(",") if item.strip()]
        return cls(
            consumer_key=data.get("consumer_key"),
            consumer_secret=data.get("consumer_secret"),
            access_token=data.get("access_token"),
            access_token_secret=data.get("access_token_secret"),
            app_only_auth=bool(data.get("app_only_auth")),
            timeout_ms=float(timeout_ms) if timeout_ms is not None else None,
            trusted_cert_fingerprints=tuple(item.strip() for item in fingerprints),
        )

    @property
    def timeout(self) -> float | None:
        """Request timeout in seconds, as ``requests`` expects it."""

        if self.timeout_ms is None:
            return None
        return self.timeout_ms / 1000.0

    def with_auth(self, auth: Mapping[str, Any]) -> "ClientConfig":
        """Return a copy with the non-empty credential keys of ``auth`` applied."""

        updates = {key: auth[key] for key in CREDENTIAL_KEYS if auth.get(key)}
        updated = replace(self, **updates)
        validate_config(updated.to_dict())
        return updated

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            key: getattr(self, key) for key in CREDENTIAL_KEYS if getattr(self, key)
        }
        data["app_only_auth"] = self.app_only_auth
        if self.timeout_ms is not None:
            data["timeout_ms"] = self.timeout_ms
        if self.trusted_cert_fingerprints:
            data["trusted_cert_fingerprints"] = list(self.trusted_cert_fingerprints)
        return data


class ConfigManager:
    """Loads and persists client configuration from env, .env or JSON files."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
        dotenv_path: Path | None = None,
    ) -> None:
        self._config_path = config_path or Path("credentials/twit_config.json")
        self._env = env if env is not None else os.environ
        self._dotenv_path = dotenv_path or Path(".env")

    def load_config(
        self,
        priority: Sequence[str] = ("env", "dotenv", "file"),
    ) -> ClientConfig:
        """
        Load configuration according to the requested priority order.

        Raises:
            ConfigError: when no source holds credentials, or the first
                source that does fails validation.
        """

        for source in priority:
            if source == "env":
                data = self._load_from_env()
            elif source == "dotenv":
                data = self._load_from_dotenv()
            elif source == "file":
                data = self._load_from_file()
            else:
                raise ValueError(f"Unknown config source '{source}'.")

            if data:
                return ClientConfig.from_mapping(data)

        raise ConfigError("Twitter credentials are not configured.")

    def save_config(self, config: ClientConfig) -> None:
        """Persist configuration to disk, merging with existing values."""

        merged = self._load_from_file() or {}
        merged.update(config.to_dict())

        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        with self._config_path.open("w", encoding="utf-8") as fp:
            json.dump(merged, fp, indent=2, sort_keys=True)

        os.chmod(self._config_path, 0o600)

    def _load_from_env(self) -> dict[str, Any] | None:
        return _from_string_values(
            {field_name: self._env.get(env_name) for field_name, env_name in ENV_VAR_MAP.items()}
        )

    def _load_from_dotenv(self) -> dict[str, Any] | None:
        if not self._dotenv_path.exists():
            return None
        values = dotenv_values(self._dotenv_path)
        return _from_string_values(
            {field_name: values.get(env_name) for field_name, env_name in ENV_VAR_MAP.items()}
        )

    def _load_from_file(self) -> dict[str, Any] | None:
        if not self._config_path.exists():
            return None

        with self._config_path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)

        if not isinstance(data, Mapping):
            raise ConfigError(f"Config file {self._config_path} did not contain a mapping.")

        if not any(data.get(key) for key in CREDENTIAL_KEYS):
            return None
        return dict(data)


def _from_string_values(values: Mapping[str, str | None]) -> dict[str, Any] | None:
    if not any(values.get(key) for key in CREDENTIAL_KEYS):
        return None

    data: dict[str, Any] = {key: values[key] for key in CREDENTIAL_KEYS if values.get(key)}
    data["app_only_auth"] = (values.get("app_only_auth") or "").strip().lower() in _TRUTHY
    if values.get("timeout_ms"):
        data["timeout_ms"] = values["timeout_ms"]
    if values.get("trusted_cert_fingerprints"):
        data["trusted_cert_fingerprints"] = values["trusted_cert_fingerprints"]
    return data
