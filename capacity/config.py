"""
YAML configuration loader.

Reads config.yaml and produces a typed Catalog / ServerSettings pair.
Falls back to the built-in camp catalog if the config file is missing.
Deployment secrets and ports come from the environment and override
whatever the file says.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from capacity import notifier
from capacity.errors import ConfigError
from capacity.models import Catalog, Program, ServerSettings

# Default path: config.yaml next to the project root
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

# Fallback if no config file exists at all
_DEFAULT_PROGRAMS = [
    Program(id="week1", limit=5),
    Program(id="week2", limit=24),
    Program(id="summerA", limit=18),
]


def _parse_programs(entries: object) -> List[Program]:
    if not isinstance(entries, list):
        raise ConfigError("'programs' must be a list")
    programs: List[Program] = []
    for entry in entries:
        if not isinstance(entry, dict) or "id" not in entry or "limit" not in entry:
            raise ConfigError(f"Each program needs an 'id' and a 'limit': {entry!r}")
        programs.append(
            Program(
                id=str(entry["id"]),
                limit=entry["limit"],
                name=str(entry["name"]) if entry.get("name") is not None else None,
            )
        )
    return programs


def _int_setting(raw_settings: Dict[str, object], key: str, default: int, minimum: int) -> int:
    value = raw_settings.get(key, default)
    if isinstance(value, (bool, float)):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be an integer, got {value!r}") from exc
    if number < minimum:
        raise ConfigError(f"'{key}' must be at least {minimum}, got {number}")
    return number


def _parse_origins(raw: object) -> List[str]:
    if isinstance(raw, str):
        return [o.strip() for o in raw.split(",") if o.strip()]
    if isinstance(raw, list):
        return [str(o) for o in raw]
    raise ConfigError(f"'cors_origins' must be a list or comma-separated string: {raw!r}")


def _apply_env(settings: ServerSettings, env: Mapping[str, str]) -> None:
    if env.get("ADMIN_KEY"):
        settings.admin_key = env["ADMIN_KEY"]
    if env.get("PORT"):
        try:
            settings.port = int(env["PORT"])
        except ValueError as exc:
            raise ConfigError(f"PORT must be an integer, got {env['PORT']!r}") from exc
    if env.get("COUNTERS_FILE"):
        settings.counters_file = env["COUNTERS_FILE"]
    if env.get("KEEPALIVE_URL"):
        settings.keepalive_url = env["KEEPALIVE_URL"]


def load_config(
    path: str | Path | None = None,
    env: Optional[Mapping[str, str]] = None,
) -> Tuple[Catalog, ServerSettings]:
    """
    Load and parse the YAML configuration file.

    Returns:
        A tuple of (Catalog, ServerSettings).
    """
    env = os.environ if env is None else env
    if path:
        config_path = Path(path)
    elif env.get("CAPACITY_CONFIG"):
        config_path = Path(env["CAPACITY_CONFIG"])
    else:
        config_path = _DEFAULT_CONFIG_PATH

    if not config_path.exists():
        notifier.print_warning(f"Config file not found at {config_path}, using defaults.")
        settings = ServerSettings()
        _apply_env(settings, env)
        return Catalog(_DEFAULT_PROGRAMS), settings

    with open(config_path, "r") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    # Parse programs
    programs = _parse_programs(raw.get("programs", []))
    if not programs:
        programs = list(_DEFAULT_PROGRAMS)
    catalog = Catalog(programs)

    # Parse global settings
    raw_settings: Dict[str, object] = raw.get("settings") or {}
    defaults = ServerSettings()
    settings = ServerSettings(
        log_level=str(raw_settings.get("log_level", defaults.log_level)),
        host=str(raw_settings.get("host", defaults.host)),
        port=_int_setting(raw_settings, "port", defaults.port, minimum=0),
        counters_file=str(raw_settings.get("counters_file", defaults.counters_file)),
        keepalive_url=str(raw_settings.get("keepalive_url") or ""),
        keepalive_interval=_int_setting(
            raw_settings, "keepalive_interval", defaults.keepalive_interval, minimum=1
        ),
        cors_origins=_parse_origins(raw_settings.get("cors_origins", defaults.cors_origins)),
    )
    _apply_env(settings, env)

    return catalog, settings
