from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from dotenv import load_dotenv
from jsonschema.exceptions import ValidationError

from maintlog.models.config_models import AppConfig, FieldAliases

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/maintlog.yml``)
- Validate it against the bundled JSON schema
- Fill anything missing from the AppConfig / FieldAliases defaults
- Apply environment overrides (``.env`` is read first via python-dotenv)

Precedence: environment > YAML > built-in defaults.
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "ENV_SPREADSHEET_ID",
    "ENV_SCRIPT_URL",
    "load_config",
    "load_env_file",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/maintlog.yml")

ENV_SPREADSHEET_ID = "MAINTLOG_SPREADSHEET_ID"
ENV_SCRIPT_URL = "MAINTLOG_SCRIPT_URL"


class ConfigError(Exception):
    pass


def load_env_file(path: Path = Path(".env"), override: bool = False) -> bool:
    """Load ``.env`` into the process environment.

    Returns:
        True when the file existed and was read
    """
    if not path.exists():
        return False
    return bool(load_dotenv(dotenv_path=path, override=override))


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid or the data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return data


def load_config(path: Path | None = None) -> AppConfig:
    """Build the AppConfig.

    Args:
        path: Explicit config file; must exist. None tries
            ``DEFAULT_CONFIG_PATH`` and falls back to defaults when absent.

    Raises:
        ConfigError: explicit file missing, unreadable YAML or schema violation
    """
    if path is not None and not path.exists():
        raise ConfigError(f"config file not found: {path}")
    source = path if path is not None else DEFAULT_CONFIG_PATH
    data = _read_yaml(source) if source.exists() else {}

    _validate_config_schema(data)

    defaults = AppConfig()
    aliases = FieldAliases().with_overrides(data.get("aliases", {}))
    return AppConfig(
        spreadsheet_id=os.getenv(ENV_SPREADSHEET_ID) or data.get("spreadsheet_id", defaults.spreadsheet_id),
        script_url=os.getenv(ENV_SCRIPT_URL) or data.get("script_url", defaults.script_url),
        drive_folder_url=data.get("drive_folder_url", defaults.drive_folder_url),
        history_sheet=data.get("history_sheet", defaults.history_sheet),
        accounts_sheet=data.get("accounts_sheet", defaults.accounts_sheet),
        request_timeout=data.get("request_timeout", defaults.request_timeout),
        session_file=data.get("session_file", defaults.session_file),
        aliases=aliases,
    )
