from __future__ import annotations
"""Adapter configuration and its persistence helpers."""
from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any, Mapping, Optional

import keyring
from keyring.errors import KeyringError


class ConfigError(ValueError):
    """Raised when a configuration mapping is missing required values."""


@dataclass(frozen=True)
class CosConfig:
    """Immutable connection settings for one bucket."""

    bucket: str
    app_id: str
    secret_id: str
    secret_key: str
    region: str
    scheme: str = "http"
    cdn: Optional[str] = None
    encrypt: bool = False
    timeout: Optional[float] = None
    connect_timeout: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CosConfig:
        """Build a config from the nested ``credentials`` layout.

        Both ``appId``/``secretId``/``secretKey`` and their snake_case
        spellings are accepted inside ``credentials``.
        """
        credentials = data.get("credentials") or {}
        if not isinstance(credentials, Mapping):
            raise ConfigError("'credentials' must be a mapping")

        app_id = _first(credentials, "appId", "app_id")
        secret_id = _first(credentials, "secretId", "secret_id")
        secret_key = _first(credentials, "secretKey", "secret_key")
        bucket = data.get("bucket")
        region = data.get("region")

        missing = [
            name
            for name, value in (
                ("bucket", bucket),
                ("region", region),
                ("credentials.appId", app_id),
                ("credentials.secretId", secret_id),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing configuration value(s): {', '.join(missing)}")

        return cls(
            bucket=str(bucket),
            app_id=str(app_id),
            secret_id=str(secret_id),
            secret_key=str(secret_key or ""),
            region=str(region),
            scheme=str(data.get("scheme") or "http"),
            cdn=data.get("cdn") or None,
            encrypt=_bool(data.get("encrypt"), "encrypt"),
            timeout=_optional_float(data.get("timeout"), "timeout"),
            connect_timeout=_optional_float(data.get("connect_timeout"), "connect_timeout"),
        )


def _first(mapping: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = mapping.get(name)
        if value not in (None, ""):
            return value
    return None


TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


def _bool(value: Any, name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ConfigError(f"'{name}' must be a boolean")


def _optional_float(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{name}' must be a number") from exc
    if number <= 0:
        raise ConfigError(f"'{name}' must be greater than zero")
    return number


class KeychainStore:
    """Encapsulates OS keychain access for secret keys."""

    def __init__(self, service_name: str = "cos_fs"):
        self._service_name = service_name

    def get_secret(self, secret_id: str) -> str:
        if not secret_id:
            return ""
        try:
            return keyring.get_password(self._service_name, secret_id) or ""
        except KeyringError:
            return ""

    def set_secret(self, secret_id: str, secret_key: str) -> bool:
        if not secret_id or not secret_key:
            return False
        try:
            keyring.set_password(self._service_name, secret_id, secret_key)
        except KeyringError:
            return False
        return True


class ConfigStorage:
    """JSON-backed loader for :class:`CosConfig`.

    A file may omit ``credentials.secretKey``; the key is then looked up
    in the OS keychain under the file's ``secretId``.
    """

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".cos_fs.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CosConfig:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Unable to read {self._path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{self._path} must contain a JSON object")

        config = CosConfig.from_mapping(data)
        if not config.secret_key:
            secret_key = self._keychain.get_secret(config.secret_id)
            if not secret_key:
                raise ConfigError(f"No secret key for '{config.secret_id}' in file or keychain")
            config = CosConfig.from_mapping(
                {**data, "credentials": {**data["credentials"], "secretKey": secret_key}}
            )
        return config

    def save(self, config: CosConfig) -> None:
        """Persist ``config``, moving its secret key into the keychain.

        The key stays in the file when no keychain backend can store it.
        """
        stored = self._keychain.set_secret(config.secret_id, config.secret_key)
        payload = {
            "bucket": config.bucket,
            "region": config.region,
            "scheme": config.scheme,
            "encrypt": config.encrypt,
            "credentials": {"appId": config.app_id, "secretId": config.secret_id},
        }
        if not stored and config.secret_key:
            payload["credentials"]["secretKey"] = config.secret_key
        if config.cdn:
            payload["cdn"] = config.cdn
        if config.timeout is not None:
            payload["timeout"] = config.timeout
        if config.connect_timeout is not None:
            payload["connect_timeout"] = config.connect_timeout
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
