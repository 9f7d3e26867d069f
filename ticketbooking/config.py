"""Runtime configuration for the user management service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from .schemas import CreateUserRequest

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_PAGE_SIZE = 10

SAMPLE_USERS: tuple[Dict[str, str], ...] = (
    {
        "email": "admin@example.com",
        "password": "Admin@12345",
        "first_name": "Admin",
        "last_name": "User",
        "phone_number": "+1234567890",
    },
    {
        "email": "test@example.com",
        "password": "Test@12345",
        "first_name": "Test",
        "last_name": "User",
        "phone_number": "+1987654321",
    },
)


class ConfigurationError(ValueError):
    """Raised when environment settings or seed files are invalid."""


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer value {value!r} for {name}") from exc
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be a positive integer")
    return parsed


def _env_path(value: Optional[str]) -> Optional[Path]:
    if value is None or value.strip() == "":
        return None
    return Path(value).expanduser().resolve(strict=False)


def _env_log_level(value: Optional[str]) -> str:
    if value is None or value.strip() == "":
        return "INFO"
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown log level {value!r}")
    return level


@dataclass(frozen=True)
class Settings:
    """Settings resolved from ``TICKETBOOKING_*`` environment variables."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    default_page_size: int = DEFAULT_PAGE_SIZE
    seed_file: Optional[Path] = None
    seed_sample_data: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            host=(env.get("TICKETBOOKING_HOST") or DEFAULT_HOST).strip(),
            port=_env_int("TICKETBOOKING_PORT", env.get("TICKETBOOKING_PORT"), DEFAULT_PORT),
            log_level=_env_log_level(env.get("TICKETBOOKING_LOG_LEVEL")),
            default_page_size=_env_int(
                "TICKETBOOKING_DEFAULT_PAGE_SIZE",
                env.get("TICKETBOOKING_DEFAULT_PAGE_SIZE"),
                DEFAULT_PAGE_SIZE,
            ),
            seed_file=_env_path(env.get("TICKETBOOKING_SEED_FILE")),
            seed_sample_data=_env_bool(env.get("TICKETBOOKING_SEED_SAMPLE_DATA"), False),
        )


def load_seed_users(seed_path: Path) -> List[CreateUserRequest]:
    """Load user creation requests from a YAML file with a ``users`` list."""
    try:
        with seed_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigurationError(f"Unable to read seed file {seed_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Seed file {seed_path} is not valid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError("Seed file must contain a mapping with a 'users' key")

    users_raw = raw.get("users") or []
    if not isinstance(users_raw, list):
        raise ConfigurationError("The 'users' key must hold a list of user entries")

    requests: List[CreateUserRequest] = []
    for index, item in enumerate(users_raw):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Seed user #{index + 1} must be a mapping")
        try:
            requests.append(CreateUserRequest(**item))
        except ValidationError as exc:
            raise ConfigurationError(f"Seed user #{index + 1} is invalid: {exc}") from exc
    return requests


def sample_users() -> List[CreateUserRequest]:
    return [CreateUserRequest(**item) for item in SAMPLE_USERS]


__all__ = [
    "ConfigurationError",
    "SAMPLE_USERS",
    "Settings",
    "load_seed_users",
    "sample_users",
]
