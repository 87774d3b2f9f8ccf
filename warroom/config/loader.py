from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

_DEFAULT_ROOM_LIMITS = {
    "description_min_length": 100,
    "message_max_length": 2000,
    "default_max_participants": 50,
    "min_max_participants": 5,
    "list_default_limit": 20,
    "list_max_limit": 100,
}
_DEFAULT_ROOM_SYNC = {
    "interval_seconds": 5,
    "request_timeout_seconds": 10,
}
_DEFAULT_VIDEO = {
    "base_url": "https://meet.jit.si",
    "session_prefix": "startup-warroom-",
}
_DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 30


def _config_path() -> Path:
    override = os.getenv("WARROOM_CONFIG_PATH")
    return Path(override) if override else _CONFIG_PATH


def load_config() -> Dict[str, Any]:
    """Load the application config from YAML, returning an empty mapping on error."""
    path = _config_path()
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
            if isinstance(data, dict):
                return data
            logging.warning("Config file %s is not a mapping; using defaults.", path)
            return {}
    except FileNotFoundError:
        logging.warning("Configuration file %s not found; using defaults.", path)
        return {}
    except Exception as exc:  # noqa: BLE001
        logging.error("Failed to load configuration from %s: %s", path, exc)
        return {}


def _coerce_positive_int(value: Any, fallback: int) -> int:
    try:
        candidate = int(value)
        return candidate if candidate > 0 else fallback
    except Exception:  # noqa: BLE001
        return fallback


def _coerce_positive_float(value: Any, fallback: float) -> float:
    try:
        candidate = float(value)
        return candidate if candidate > 0 else fallback
    except Exception:  # noqa: BLE001
        return fallback


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def get_room_limits() -> Dict[str, int]:
    """Return war room validation limits sourced from config with safe defaults."""
    config = load_config()
    section = config.get("rooms") or {}
    limits = dict(_DEFAULT_ROOM_LIMITS)
    for key, fallback in _DEFAULT_ROOM_LIMITS.items():
        limits[key] = _coerce_positive_int(section.get(key), fallback)

    # A default below the floor would make every room invalid at creation.
    if limits["default_max_participants"] < limits["min_max_participants"]:
        limits["default_max_participants"] = limits["min_max_participants"]
    if limits["list_default_limit"] > limits["list_max_limit"]:
        limits["list_default_limit"] = limits["list_max_limit"]
    return limits


def get_room_sync_settings() -> Dict[str, Any]:
    """Return snapshot polling settings for room clients."""
    config = load_config()
    section = config.get("room_sync") or {}
    defaults = dict(_DEFAULT_ROOM_SYNC)
    return {
        "interval_seconds": _coerce_positive_float(
            section.get("interval_seconds"), defaults["interval_seconds"]
        ),
        "request_timeout_seconds": _coerce_positive_float(
            section.get("request_timeout_seconds"),
            defaults["request_timeout_seconds"],
        ),
    }


def get_video_settings() -> Dict[str, str]:
    """Return the external conferencing host and session naming prefix."""
    config = load_config()
    section = config.get("video") or {}
    settings = dict(_DEFAULT_VIDEO)
    base_url = section.get("base_url")
    if isinstance(base_url, str) and base_url.strip():
        settings["base_url"] = base_url.strip().rstrip("/")
    prefix = section.get("session_prefix")
    if isinstance(prefix, str) and prefix.strip():
        settings["session_prefix"] = prefix.strip()
    return settings


def get_access_token_expire_minutes() -> int:
    """
    Return the access token lifetime.

    Priority:
    1) config.yaml auth.access_token_expire_minutes
    2) WARROOM_ACCESS_TOKEN_EXPIRE_MINUTES env var
    3) default 30
    """
    config = load_config()
    section = config.get("auth") or {}
    configured = _coerce_positive_int(section.get("access_token_expire_minutes"), 0)
    if configured:
        return configured
    return _coerce_positive_int(
        os.getenv("WARROOM_ACCESS_TOKEN_EXPIRE_MINUTES"),
        _DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def get_secure_cookies_enabled() -> bool:
    """
    Return whether auth cookies should be marked Secure.

    Priority:
    1) WARROOM_SECURE_COOKIES env var
    2) config.yaml auth.secure_cookies
    3) default False (local HTTP-friendly)
    """
    env_value = os.getenv("WARROOM_SECURE_COOKIES")
    if env_value is not None:
        return env_value.strip().lower() in {"1", "true", "yes", "on"}

    config = load_config()
    section = config.get("auth") or {}
    return _coerce_bool(section.get("secure_cookies"), False)
