"""Configuration loading with deterministic merge order.

Precedence, lowest to highest: built-in defaults, the JSON settings file,
``ACE_CONTEXT_*`` environment variables, then CLI overrides.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

__all__ = [
    "ConfigError",
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_TEXT_EXTENSIONS",
    "Settings",
    "default_config_dir",
    "default_settings_file",
    "load_settings",
    "save_settings",
]

ENV_PREFIX = "ACE_CONTEXT_"

DEFAULT_BATCH_SIZE = 10
DEFAULT_MAX_LINES_PER_BLOB = 800

DEFAULT_TEXT_EXTENSIONS = frozenset(
    {
        ".py", ".js", ".ts", ".jsx", ".tsx",
        ".java", ".c", ".cpp", ".h", ".hpp",
        ".cs", ".go", ".rs", ".rb", ".php",
        ".swift", ".kt", ".scala", ".sh",
        ".md", ".txt", ".json", ".yaml", ".yml",
        ".xml", ".html", ".css", ".scss", ".less",
        ".sql", ".graphql", ".proto", ".toml", ".ini",
    }
)  # fmt: skip

DEFAULT_EXCLUDE_PATTERNS = (
    "node_modules",
    ".git",
    ".venv",
    "venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    "coverage",
    ".DS_Store",
    "*.pyc",
    "*.pyo",
    "*.pyd",
    ".env",
    ".env.*",
)

_PERSISTED_FIELDS = (
    "base_url",
    "token",
    "batch_size",
    "max_lines_per_blob",
    "text_extensions",
    "exclude_patterns",
    "default_project",
)


class ConfigError(ValueError):
    """Raised when the merged configuration is missing or invalid."""


def default_config_dir() -> Path:
    return Path.home() / ".ace-context"


def default_settings_file() -> Path:
    return default_config_dir() / "settings.json"


@dataclass(slots=True, frozen=True)
class Settings:
    """Fully merged runtime configuration."""

    base_url: str
    token: str
    batch_size: int = DEFAULT_BATCH_SIZE
    max_lines_per_blob: int = DEFAULT_MAX_LINES_PER_BLOB
    text_extensions: frozenset[str] = DEFAULT_TEXT_EXTENSIONS
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    storage_path: Path = default_config_dir() / "data"
    default_project: str | None = None

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable snapshot with the token masked."""
        return {
            "base_url": self.base_url,
            "token": "***" if self.token else "",
            "batch_size": self.batch_size,
            "max_lines_per_blob": self.max_lines_per_blob,
            "text_extensions": sorted(self.text_extensions),
            "exclude_patterns": list(self.exclude_patterns),
            "storage_path": str(self.storage_path),
            "default_project": self.default_project,
        }


def load_settings_file(path: Path) -> dict[str, Any]:
    """Read the optional JSON settings file; unreadable files count as empty."""
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Failed to load settings file %s: %s", path, exc)
        return {}
    if not isinstance(payload, dict):
        logger.error("Ignoring settings file %s: expected a JSON object", path)
        return {}
    return payload


def load_env_settings(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key in (
        "base_url",
        "token",
        "batch_size",
        "max_lines_per_blob",
        "storage_path",
        "default_project",
    ):
        raw = environ.get(ENV_PREFIX + key.upper())
        if raw:
            values[key] = raw
    return values


def load_settings(
    cli_overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    settings_file: Path | str | None = None,
) -> Settings:
    """Merge every configuration layer and validate the result."""
    file_path = (
        Path(settings_file).expanduser()
        if settings_file is not None
        else default_settings_file()
    )
    merged: dict[str, Any] = {}
    merged.update(load_settings_file(file_path))
    merged.update(load_env_settings(os.environ if environ is None else environ))
    merged.update(
        {key: value for key, value in (cli_overrides or {}).items() if value is not None}
    )

    settings = _build_settings(merged)
    logger.info(
        "Configuration loaded: base_url=%s, batch_size=%d, max_lines_per_blob=%d",
        settings.base_url,
        settings.batch_size,
        settings.max_lines_per_blob,
    )
    return settings


def save_settings(settings: Settings, path: Path | str | None = None) -> Path:
    """Persist the user-facing settings (not the storage path) as JSON."""
    target = Path(path).expanduser() if path is not None else default_settings_file()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload: dict[str, Any] = {}
    for key in _PERSISTED_FIELDS:
        value = getattr(settings, key)
        if isinstance(value, (frozenset, tuple)):
            value = sorted(value) if isinstance(value, frozenset) else list(value)
        payload[key] = value
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Settings saved to %s", target)
    return target


def _build_settings(values: Mapping[str, Any]) -> Settings:
    base_url = _optional_string(values.get("base_url"), "base_url")
    if not base_url:
        raise ConfigError(
            "base_url is required; set ACE_CONTEXT_BASE_URL or pass --base-url."
        )
    token = _optional_string(values.get("token"), "token")
    if not token:
        raise ConfigError("token is required; set ACE_CONTEXT_TOKEN or pass --token.")

    settings = Settings(base_url=base_url.rstrip("/"), token=token)
    updates: dict[str, Any] = {
        "batch_size": _positive_int(
            values.get("batch_size"), "batch_size", settings.batch_size
        ),
        "max_lines_per_blob": _positive_int(
            values.get("max_lines_per_blob"),
            "max_lines_per_blob",
            settings.max_lines_per_blob,
        ),
    }
    if values.get("text_extensions") is not None:
        updates["text_extensions"] = frozenset(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in _strings(values["text_extensions"], "text_extensions")
        )
    if values.get("exclude_patterns") is not None:
        updates["exclude_patterns"] = _strings(
            values["exclude_patterns"], "exclude_patterns"
        )
    storage_path = _optional_string(values.get("storage_path"), "storage_path")
    if storage_path:
        updates["storage_path"] = Path(storage_path).expanduser()
    default_project = _optional_string(values.get("default_project"), "default_project")
    if default_project:
        updates["default_project"] = default_project
    return replace(settings, **updates)


def _optional_string(value: object, field: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, Path):
        return str(value)
    if not isinstance(value, str):
        raise ConfigError(f"Config field '{field}' must be a string.")
    return value.strip() or None


def _positive_int(value: object, field: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"Config field '{field}' must be an integer.")
    if isinstance(value, str):
        try:
            value = int(value.strip(), 10)
        except ValueError as exc:
            raise ConfigError(f"Config field '{field}' must be an integer.") from exc
    if not isinstance(value, int):
        raise ConfigError(f"Config field '{field}' must be an integer.")
    if value <= 0:
        raise ConfigError(f"Config field '{field}' must be greater than 0.")
    return value


def _strings(value: object, field: str) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ConfigError(f"Config field '{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"Config field '{field}' must contain only strings.")
        output.append(item)
    return tuple(output)
