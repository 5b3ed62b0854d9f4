"""Coordination of detection, resolution and execution for a repository."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Union

from .bulk import BulkDataAggregator
from .config import ConfigError, RepoDetectConfig, load_config
from .ignore import IgnoreMatcher
from .logging import get_logger
from .models import (
    REMOVE,
    ActionCategory,
    ActionKey,
    ProjectContext,
    RepositoryAction,
    TargetData,
    TargetInfo,
    action_key,
)
from .repo_scanner import PackageScanner
from .resolver import TargetNotFound, TargetResolver
from .runner import CommandRunner, OutputCallback, working_directory
from .targets import TargetBuilder

PathLike = Union[str, Path]

# CLI verbs that are aliases of a pipeline category.
ACTION_ALIASES = {
    "run": ActionCategory.DEV,
    "typecheck": ActionCategory.CHECK,
}

_DEV_FLAGS = ("--save-dev", "--dev")


class MissingActionError(RuntimeError):
    """Raised when a target has no command configured for the requested action."""


def _silent(message: str, level: str) -> None:
    return None


def resolve_action(action: Union[str, ActionKey]) -> ActionKey:
    if isinstance(action, str) and action.strip().lower() in ACTION_ALIASES:
        return ACTION_ALIASES[action.strip().lower()]
    return action_key(action)


def build_package_command(
    action: RepositoryAction,
    package_name: str,
    *,
    package_manager: Optional[str] = None,
    is_dev: bool = False,
    use_workspace: Optional[bool] = None,
    additional_flags: Sequence[str] = (),
) -> str:
    """Compose the command line that adds or removes ``package_name``."""
    available = action.flags or []
    flags = []
    if use_workspace is not False and package_manager == "pnpm" and "-w" in available:
        flags.append("-w")
    if is_dev:
        dev_flags = [flag for flag in available if flag in _DEV_FLAGS]
        if dev_flags:
            flags.append(dev_flags[0])
    flags.extend(additional_flags)

    if action.command.endswith("="):
        return " ".join([f"{action.command}{package_name}", *flags])
    return " ".join([action.command, *flags, package_name])


class Orchestrator:
    """Runs detection and execution flows with injectable collaborators."""

    def __init__(
        self,
        scanner: PackageScanner | None = None,
        builder: TargetBuilder | None = None,
        resolver: TargetResolver | None = None,
        runner: CommandRunner | None = None,
        bulk: BulkDataAggregator | None = None,
    ) -> None:
        self.scanner = scanner or PackageScanner()
        self._builder = builder
        self.resolver = resolver or TargetResolver()
        self._runner = runner
        self.bulk = bulk or BulkDataAggregator()
        self.logger = get_logger("orchestrator")

    # ------------------------------------------------------------------
    # Detection

    def detect(
        self,
        path: PathLike,
        *,
        strict: bool = False,
        include_target_data: bool = False,
    ) -> ProjectContext:
        """Analyze ``path`` and return a fresh ProjectContext.

        Failures degrade to ``ProjectContext(name="unknown")`` unless ``strict``.
        """
        try:
            return self._detect(Path(path), strict=strict, include_target_data=include_target_data)
        except Exception:
            if strict:
                raise
            self.logger.exception("Error detecting repository at %s", path)
            return ProjectContext(name="unknown", targets={})

    def _detect(self, path: Path, *, strict: bool, include_target_data: bool) -> ProjectContext:
        repo_path = path.expanduser().resolve()
        if not repo_path.exists():
            raise FileNotFoundError(f"Repository path not found: {path}")
        if not repo_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {path}")

        self.logger.info("Detecting targets in %s", repo_path)
        config = self._load_config(repo_path, strict=strict)
        matcher = IgnoreMatcher.for_repository(repo_path, config.exclude_paths)
        packages = self.scanner.scan(repo_path, matcher=matcher)
        targets = self._builder_for(config).build(packages, repo_path)
        self.logger.info("Detected %d target(s) from %d package(s)", len(targets), len(packages))

        context = ProjectContext(name=repo_path.name, targets=targets)
        if include_target_data:
            context.target_dependencies = self.bulk.get_bulk_data(targets, repo_path)
        return context

    def _load_config(self, repo_path: Path, *, strict: bool) -> RepoDetectConfig:
        try:
            return load_config(repo_path)
        except ConfigError as exc:
            if strict:
                raise
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            return RepoDetectConfig(root=repo_path)

    def _builder_for(self, config: RepoDetectConfig) -> TargetBuilder:
        if self._builder is not None:
            return self._builder
        return TargetBuilder(config=config)

    def _runner_for(self, repo_path: Path) -> CommandRunner:
        if self._runner is not None:
            return self._runner
        try:
            echo = load_config(repo_path).execution.echo
        except ConfigError:
            echo = True
        return CommandRunner(echo=echo)

    # ------------------------------------------------------------------
    # Execution

    def execute(
        self,
        action: Union[str, ActionKey],
        specifier: Optional[str],
        repo_path: PathLike,
        *,
        on_output: Optional[OutputCallback] = None,
        additional_args: Optional[Sequence[str]] = None,
        cwd: Optional[PathLike] = None,
    ) -> TargetInfo:
        """Resolve ``specifier`` and run its install, check and ``action`` commands."""
        emit = on_output or _silent
        key = resolve_action(action)
        try:
            repo, target = self._select_target(specifier, repo_path, cwd, emit)
            self._runner_for(repo).execute(
                target,
                key,
                repo,
                on_output=emit,
                additional_args=additional_args,
            )
            emit(f"{key.value} completed successfully!", "success")
            return target
        except Exception as exc:
            emit(f"{key.value} failed: {exc}", "error")
            raise

    def add(
        self,
        specifier: Optional[str],
        repo_path: PathLike,
        *,
        package_name: str,
        is_dev: bool = False,
        use_workspace: Optional[bool] = None,
        additional_flags: Optional[Sequence[str]] = None,
        on_output: Optional[OutputCallback] = None,
        cwd: Optional[PathLike] = None,
    ) -> TargetInfo:
        """Add ``package_name`` to the resolved target with its first ``add`` command."""
        emit = on_output or _silent
        try:
            return self._package_change(
                ActionCategory.ADD,
                specifier,
                repo_path,
                package_name=package_name,
                is_dev=is_dev,
                use_workspace=use_workspace,
                additional_flags=additional_flags or (),
                cwd=cwd,
                emit=emit,
            )
        except Exception as exc:
            emit(f"Failed to add package {package_name}: {exc}", "error")
            raise

    def remove(
        self,
        specifier: Optional[str],
        repo_path: PathLike,
        *,
        package_name: str,
        additional_flags: Optional[Sequence[str]] = None,
        on_output: Optional[OutputCallback] = None,
        cwd: Optional[PathLike] = None,
    ) -> TargetInfo:
        """Remove ``package_name`` from the resolved target with its ``remove`` command."""
        emit = on_output or _silent
        try:
            return self._package_change(
                REMOVE,
                specifier,
                repo_path,
                package_name=package_name,
                is_dev=False,
                use_workspace=None,
                additional_flags=additional_flags or (),
                cwd=cwd,
                emit=emit,
            )
        except Exception as exc:
            emit(f"Failed to remove package {package_name}: {exc}", "error")
            raise

    def _package_change(
        self,
        key: ActionKey,
        specifier: Optional[str],
        repo_path: PathLike,
        *,
        package_name: str,
        is_dev: bool,
        use_workspace: Optional[bool],
        additional_flags: Sequence[str],
        cwd: Optional[PathLike],
        emit: OutputCallback,
    ) -> TargetInfo:
        repo, target = self._select_target(specifier, repo_path, cwd, emit)
        actions = target.actions.get(key)
        if not actions:
            raise MissingActionError(f"No {key.value} command configured for target {target.address}")

        command = build_package_command(
            actions[0],
            package_name,
            package_manager=target.package_manager,
            is_dev=is_dev,
            use_workspace=use_workspace,
            additional_flags=additional_flags,
        )
        verb = "Adding" if key is ActionCategory.ADD else "Removing"
        emit(f"{verb} package: {package_name}", "info")
        emit(f"  Running: {command}", "info")
        self._runner_for(repo).run(command, working_directory(target, repo))

        done = "added" if key is ActionCategory.ADD else "removed"
        emit(f"Package {package_name} {done} successfully!", "success")
        return target

    def _select_target(
        self,
        specifier: Optional[str],
        repo_path: PathLike,
        cwd: Optional[PathLike],
        emit: OutputCallback,
    ) -> tuple[Path, TargetInfo]:
        repo = Path(repo_path).expanduser().resolve()
        emit(f"Analyzing repository at {repo}", "info")
        context = self.detect(repo)
        if not context.targets:
            raise TargetNotFound(specifier, "", {})

        target = self.resolver.resolve(
            specifier,
            Path(cwd) if cwd is not None else Path(os.getcwd()),
            context.targets,
            repo_path=repo,
        )
        emit(f"Using target: {target.address} ({target.name})", "info")
        return repo, target

    # ------------------------------------------------------------------
    # Bulk data

    def bulk_data(self, targets: Mapping[str, TargetInfo], repo_path: PathLike) -> Dict[str, TargetData]:
        return self.bulk.get_bulk_data(targets, repo_path)


def detect_repo(path: PathLike, *, strict: bool = False, include_target_data: bool = False) -> ProjectContext:
    """Analyze a repository and return its targets."""
    return Orchestrator().detect(path, strict=strict, include_target_data=include_target_data)


def execute_repository_command(
    action: Union[str, ActionKey],
    specifier: Optional[str],
    repo_path: PathLike,
    *,
    on_output: Optional[OutputCallback] = None,
    additional_args: Optional[Sequence[str]] = None,
    cwd: Optional[PathLike] = None,
) -> TargetInfo:
    return Orchestrator().execute(
        action,
        specifier,
        repo_path,
        on_output=on_output,
        additional_args=additional_args,
        cwd=cwd,
    )


def execute_add_command(
    specifier: Optional[str],
    repo_path: PathLike,
    *,
    package_name: str,
    is_dev: bool = False,
    use_workspace: Optional[bool] = None,
    additional_flags: Optional[Sequence[str]] = None,
    on_output: Optional[OutputCallback] = None,
    cwd: Optional[PathLike] = None,
) -> TargetInfo:
    return Orchestrator().add(
        specifier,
        repo_path,
        package_name=package_name,
        is_dev=is_dev,
        use_workspace=use_workspace,
        additional_flags=additional_flags,
        on_output=on_output,
        cwd=cwd,
    )


def execute_remove_command(
    specifier: Optional[str],
    repo_path: PathLike,
    *,
    package_name: str,
    additional_flags: Optional[Sequence[str]] = None,
    on_output: Optional[OutputCallback] = None,
    cwd: Optional[PathLike] = None,
) -> TargetInfo:
    return Orchestrator().remove(
        specifier,
        repo_path,
        package_name=package_name,
        additional_flags=additional_flags,
        on_output=on_output,
        cwd=cwd,
    )


def get_bulk_target_data(targets: Mapping[str, TargetInfo], repo_path: PathLike) -> Dict[str, TargetData]:
    """Read dependencies and env variable names for every target in ``targets``."""
    return Orchestrator().bulk_data(targets, repo_path)
