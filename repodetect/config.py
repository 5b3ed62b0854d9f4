"""Configuration loading for repodetect (.repodetect.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".repodetect.yml"

DEFAULT_ENV_FILES = (".env", ".env.local")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class EntrypointConfig:
    """Controls Python entrypoint script discovery."""

    enabled: bool = True
    exclude_dirs: List[str] = field(default_factory=list)


@dataclass
class NodeConfig:
    """Node.js specific target generation settings."""

    script_targets: bool = True


@dataclass
class ExecutionConfig:
    """Settings applied while running target pipelines."""

    echo: bool = True


@dataclass
class RepoDetectConfig:
    """Represents the settings defined in .repodetect.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    env_files: List[str] = field(default_factory=lambda: list(DEFAULT_ENV_FILES))
    entrypoints: EntrypointConfig = field(default_factory=EntrypointConfig)
    node: NodeConfig = field(default_factory=NodeConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)


def load_config(config_path: Path) -> RepoDetectConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RepoDetectConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = RepoDetectConfig(root=root)
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    env_files = _as_str_list(data.get("env_files"))
    if env_files:
        config.env_files = env_files

    entry_data = _as_dict(data.get("entrypoints"))
    if entry_data:
        enabled = _as_bool(entry_data.get("enabled"))
        config.entrypoints = EntrypointConfig(
            enabled=True if enabled is None else enabled,
            exclude_dirs=_as_str_list(entry_data.get("exclude_dirs")),
        )

    node_data = _as_dict(data.get("node"))
    if node_data:
        script_targets = _as_bool(node_data.get("script_targets"))
        config.node = NodeConfig(
            script_targets=True if script_targets is None else script_targets
        )

    execution_data = _as_dict(data.get("execution"))
    if execution_data:
        echo = _as_bool(execution_data.get("echo"))
        config.execution = ExecutionConfig(echo=True if echo is None else echo)

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


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
