"""Configuration loading for qdocgen (.qdocgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .tokenizer import DEFAULT_MARKERS

CONFIG_FILENAME = ".qdocgen.yml"

DEFAULT_SOURCES = ["**/*.cpp", "**/*.h"]


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class QDocConfig:
    """Represents the settings defined in .qdocgen.yml."""

    root: Path
    sources: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCES))
    exclude_paths: List[str] = field(default_factory=list)
    symbols: Optional[Path] = None
    comment_markers: List[str] = field(default_factory=lambda: list(DEFAULT_MARKERS))
    link_notify_signals: bool = False
    parse_workers: int = 1
    output: Optional[Path] = None


def load_config(config_path: Path) -> QDocConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return QDocConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = QDocConfig(root=root)

    sources = _as_str_list(data.get("sources"))
    if sources:
        config.sources = sources
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    symbols = _as_str(data.get("symbols"))
    config.symbols = root / symbols if symbols else None

    markers = _as_str_list(data.get("comment_markers"))
    if markers:
        config.comment_markers = markers

    config.link_notify_signals = _as_bool(data.get("link_notify_signals")) or False

    workers = _as_int(data.get("parse_workers"))
    if workers is not None:
        if workers < 1:
            raise ConfigError("parse_workers must be at least 1")
        config.parse_workers = workers

    output = _as_str(data.get("output"))
    config.output = root / output if output else None

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "QDocConfig", "load_config"]
