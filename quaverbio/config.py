from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .storage import read_json, write_json


load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_BIO_SCHEMA = "Hello, {username}! Your 4K rank is {4k_rank}."
DEFAULT_UPDATE_INTERVAL_SECONDS = 1800
# Discord does not document the exact limit; 190 stays safely under it.
DEFAULT_BIO_CHAR_LIMIT = 190
DEFAULT_QUAVER_API_URL = "https://api.quavergame.com"
DEFAULT_DISCORD_API_URL = "https://discord.com/api/v9/users/@me/profile"


class ConfigError(Exception):
    pass


class ConfigNotFoundError(ConfigError):
    def __init__(self, path: Path):
        super().__init__(
            f"Config file not found. A new one has been created at '{path}', "
            "please edit it and restart the program"
        )
        self.path = path


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.rstrip(" ")


def _str_env(name: str, default: str = "") -> str:
    value = _env(name)
    if value is None:
        return default
    return value


def _optional_str_env(name: str) -> str | None:
    value = _str_env(name).strip()
    return value or None


def _bool_env(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    try:
        value = int((_env(name) or "").strip())
    except ValueError:
        value = default
    return min(max(value, minimum), maximum)


def _file_or_value_env(name: str) -> str | None:
    """Read ``name``; if it points at an existing file, return the file's contents.

    Lets the credential come from a mounted secret (``/run/secrets/...``).
    """
    value = _env(name)
    if value is None:
        return None
    path = Path(value)
    if path.is_file():
        logger.debug("Reading %s from file %s", name, path)
        return path.read_text(encoding="utf-8").rstrip()
    return value


@dataclass(frozen=True)
class Settings:
    discord_token: str | None
    config_path: Path
    log_level: str
    loki_url: str | None
    loki_log_level: str
    quaver_api_url: str
    discord_api_url: str
    request_timeout_seconds: int
    bio_char_limit: int
    strict_schema: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            discord_token=_file_or_value_env("QB_DISCORD_TOKEN") or None,
            config_path=Path(_str_env("QB_CONFIG_PATH", DEFAULT_CONFIG_FILE) or DEFAULT_CONFIG_FILE),
            log_level=(_optional_str_env("QB_LOG_LEVEL") or "TRACE").upper(),
            loki_url=_optional_str_env("QB_LOKI_URL"),
            loki_log_level=(_optional_str_env("QB_LOKI_LOG_LEVEL") or "WARN").upper(),
            quaver_api_url=_optional_str_env("QB_QUAVER_API_URL") or DEFAULT_QUAVER_API_URL,
            discord_api_url=_optional_str_env("QB_DISCORD_API_URL") or DEFAULT_DISCORD_API_URL,
            request_timeout_seconds=_int_env("QB_REQUEST_TIMEOUT_SECONDS", 30, minimum=1, maximum=300),
            bio_char_limit=_int_env("QB_BIO_CHAR_LIMIT", DEFAULT_BIO_CHAR_LIMIT, minimum=1, maximum=1000),
            strict_schema=_bool_env("QB_STRICT_SCHEMA", False),
        )

    def validate(self) -> None:
        if not self.discord_token:
            raise ValueError("The QB_DISCORD_TOKEN environment variable was not set")


@dataclass(frozen=True)
class BioConfig:
    """The user-editable config file."""

    quaver_user_id: int = 0
    bio_schema: str = DEFAULT_BIO_SCHEMA
    update_interval: int = DEFAULT_UPDATE_INTERVAL_SECONDS

    @classmethod
    def from_payload(cls, payload: Any) -> "BioConfig":
        if not isinstance(payload, dict):
            raise ConfigError("Failed to parse the config file: expected a JSON object")
        defaults = cls()

        user_id = payload.get("quaver_user_id", defaults.quaver_user_id)
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id < 0:
            raise ConfigError(f"Failed to parse the config file: invalid quaver_user_id {user_id!r}")

        bio_schema = payload.get("bio_schema", defaults.bio_schema)
        if not isinstance(bio_schema, str):
            raise ConfigError(f"Failed to parse the config file: invalid bio_schema {bio_schema!r}")

        interval = payload.get("update_interval", defaults.update_interval)
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            raise ConfigError(f"Failed to parse the config file: invalid update_interval {interval!r}")

        return cls(quaver_user_id=user_id, bio_schema=bio_schema, update_interval=interval)

    @classmethod
    def load(cls, path: Path) -> "BioConfig":
        """Load the config file, writing a default one first if it is missing.

        A missing file raises ``ConfigNotFoundError`` after the default has
        been written so the user can fill it in; the program does not run on
        implicit defaults.
        """
        logger.debug("Trying to load the config file at '%s'", path)
        try:
            payload = read_json(path)
        except FileNotFoundError:
            cls().save(path)
            raise ConfigNotFoundError(path) from None
        except ValueError as exc:
            raise ConfigError(f"Failed to parse the config file: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Failed to read the config file: {exc}") from exc
        return cls.from_payload(payload)

    def save(self, path: Path) -> None:
        logger.debug("Trying to save the config file to '%s'", path)
        try:
            write_json(path, asdict(self))
        except OSError as exc:
            raise ConfigError(f"Failed to write to the config file: {exc}") from exc
