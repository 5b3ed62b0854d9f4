"""Repository target detection and command execution."""

from .analyzers.base import ManifestError
from .config import ConfigError
from .models import (
    ActionCategory,
    ActionPipeline,
    CustomAction,
    Ecosystem,
    PackageInfo,
    ProjectContext,
    RepositoryAction,
    TargetData,
    TargetInfo,
)
from .orchestrator import (
    MissingActionError,
    Orchestrator,
    detect_repo,
    execute_add_command,
    execute_remove_command,
    execute_repository_command,
    get_bulk_target_data,
)
from .resolver import TargetNotFound
from .runner import CommandError

__all__ = [
    "ActionCategory",
    "ActionPipeline",
    "CommandError",
    "ConfigError",
    "CustomAction",
    "Ecosystem",
    "ManifestError",
    "MissingActionError",
    "Orchestrator",
    "PackageInfo",
    "ProjectContext",
    "RepositoryAction",
    "TargetData",
    "TargetInfo",
    "TargetNotFound",
    "detect_repo",
    "execute_add_command",
    "execute_remove_command",
    "execute_repository_command",
    "get_bulk_target_data",
]
