"""Core data models shared across repodetect components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union


class Ecosystem(str, Enum):
    """Build ecosystems recognised by the package scanner."""

    NODE = "node"
    RUST = "rust"
    GO = "go"
    JAVA_MAVEN = "java-maven"
    JAVA_GRADLE = "java-gradle"
    PHP = "php"
    RUBY = "ruby"
    PYTHON = "python"


class ActionCategory(str, Enum):
    """Closed set of semantic action categories every pipeline carries."""

    BUILD = "build"
    TEST = "test"
    DEPLOY = "deploy"
    DEV = "dev"
    LINT = "lint"
    FORMAT = "format"
    INSTALL = "install"
    CLEAN = "clean"
    CHECK = "check"
    ADD = "add"


@dataclass(frozen=True)
class CustomAction:
    """Action category outside the closed set, e.g. ``remove``."""

    name: str

    @property
    def value(self) -> str:
        return self.name


ActionKey = Union[ActionCategory, CustomAction]

REMOVE = CustomAction("remove")


def action_key(name: Union[str, ActionKey]) -> ActionKey:
    """Map a user supplied action name onto the action key sum type."""
    if isinstance(name, (ActionCategory, CustomAction)):
        return name
    normalized = name.strip().lower()
    try:
        return ActionCategory(normalized)
    except ValueError:
        return CustomAction(normalized)


@dataclass(frozen=True)
class RepositoryAction:
    """A single command line, optionally carrying flags for ``add`` style use."""

    command: str
    flags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"command": self.command}
        if self.flags:
            data["flags"] = list(self.flags)
        return data


class ActionPipeline:
    """Ordered mapping from action key to the commands that implement it."""

    def __init__(self) -> None:
        self._actions: Dict[ActionKey, List[RepositoryAction]] = {
            category: [] for category in ActionCategory
        }

    def get(self, key: Union[str, ActionKey]) -> List[RepositoryAction]:
        return self._actions.get(action_key(key), [])

    def add(self, key: Union[str, ActionKey], action: RepositoryAction) -> None:
        self._actions.setdefault(action_key(key), []).append(action)

    def set(self, key: Union[str, ActionKey], actions: List[RepositoryAction]) -> None:
        self._actions[action_key(key)] = list(actions)

    def copy(self) -> "ActionPipeline":
        clone = ActionPipeline()
        for key, actions in self._actions.items():
            clone._actions[key] = list(actions)
        return clone

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            key.value: [action.to_dict() for action in actions]
            for key, actions in self._actions.items()
        }

    def __iter__(self) -> Iterator[ActionKey]:
        return iter(self._actions)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            key = action_key(key)
        return key in self._actions

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ActionPipeline):
            return NotImplemented
        return self._actions == other._actions

    def __repr__(self) -> str:
        populated = {k.value: len(v) for k, v in self._actions.items() if v}
        return f"ActionPipeline({populated})"


@dataclass(frozen=True)
class PackageInfo:
    """Raw facts extracted from a single manifest file."""

    absolute_path: Path
    repo_relative_path: str
    ecosystem: Ecosystem
    manifest_file: str
    language: str
    declared_name: Optional[str] = None
    framework: Optional[str] = None
    package_manager: Optional[str] = None
    version: Optional[str] = None

    @property
    def name(self) -> str:
        return self.declared_name or self.absolute_path.name

    @property
    def manifest_path(self) -> Path:
        return self.absolute_path / self.manifest_file


@dataclass
class TargetInfo:
    """An addressable, runnable unit of the repository."""

    name: str
    path: str
    language: str
    actions: ActionPipeline = field(default_factory=ActionPipeline)
    version: Optional[str] = None
    framework: Optional[str] = None
    package_manager: Optional[str] = None
    dependency_files: List[str] = field(default_factory=list)
    env_files: List[str] = field(default_factory=list)
    entrypoint: Optional[str] = None
    target_type: str = "package"
    internal_dependencies: Optional[List[str]] = None

    @property
    def address(self) -> str:
        return f"{self.path}:{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "language": self.language,
            "target_type": self.target_type,
            "dependency_files": list(self.dependency_files),
            "env_files": list(self.env_files),
            "actions": self.actions.to_dict(),
        }
        for key in ("version", "framework", "package_manager", "entrypoint"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.internal_dependencies is not None:
            data["internal_dependencies"] = list(self.internal_dependencies)
        return data


@dataclass
class TargetData:
    """Dependency and environment facts gathered for one target."""

    dependencies: Dict[str, str] = field(default_factory=dict)
    env_names: List[str] = field(default_factory=list)
    dev_dependencies: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "dependencies": dict(self.dependencies),
            "env_names": list(self.env_names),
        }
        if self.dev_dependencies is not None:
            data["dev_dependencies"] = dict(self.dev_dependencies)
        return data


@dataclass
class ProjectContext:
    """Result of repository detection."""

    name: str
    targets: Dict[str, TargetInfo] = field(default_factory=dict)
    target_dependencies: Optional[Dict[str, TargetData]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "targets": {address: target.to_dict() for address, target in self.targets.items()},
        }
        if self.target_dependencies is not None:
            data["target_dependencies"] = {
                address: item.to_dict() for address, item in self.target_dependencies.items()
            }
        return data
