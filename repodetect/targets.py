"""Conversion of scanned packages into the address-keyed target map."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .actions import ActionSynthesizer
from .analyzers.base import ManifestError, relative_posix
from .analyzers.entrypoints import detect_python_entrypoints
from .analyzers.utils import node_scripts
from .config import DEFAULT_ENV_FILES, RepoDetectConfig
from .logging import get_logger
from .models import ActionPipeline, Ecosystem, PackageInfo, TargetInfo

DEPENDENCY_FILES: Dict[Ecosystem, Tuple[str, ...]] = {
    Ecosystem.NODE: ("package.json",),
    Ecosystem.PYTHON: ("requirements.txt", "setup.py", "pyproject.toml", "Pipfile"),
    Ecosystem.GO: ("go.mod",),
    Ecosystem.RUST: ("Cargo.toml",),
    Ecosystem.JAVA_MAVEN: ("pom.xml",),
    Ecosystem.JAVA_GRADLE: ("build.gradle", "build.gradle.kts"),
    Ecosystem.PHP: ("composer.json",),
    Ecosystem.RUBY: ("Gemfile",),
}


class TargetBuilder:
    """Turns PackageInfo records into package and script targets."""

    def __init__(
        self,
        config: Optional[RepoDetectConfig] = None,
        synthesizer: Optional[ActionSynthesizer] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config
        self.synthesizer = synthesizer or ActionSynthesizer()
        self.max_workers = max_workers
        self.logger = get_logger("targets")

    def build(self, packages: Sequence[PackageInfo], root: str | Path) -> Dict[str, TargetInfo]:
        """Return targets keyed by address, inserted in package order."""
        root_path = Path(root).resolve()
        targets: Dict[str, TargetInfo] = {}
        if not packages:
            return targets

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self._targets_for, package, root_path) for package in packages]
            results = [future.result() for future in futures]

        for package_targets in results:
            for target in package_targets:
                if target.address in targets:
                    self.logger.debug("Target %s redefined; keeping the later definition", target.address)
                targets[target.address] = target
        return targets

    def _targets_for(self, package: PackageInfo, root: Path) -> List[TargetInfo]:
        actions = self.synthesizer.synthesize(package)
        package_target = TargetInfo(
            name=package.name,
            path=package.repo_relative_path,
            language=package.language,
            version=package.version,
            framework=package.framework,
            package_manager=package.package_manager,
            dependency_files=self._dependency_files(package, root),
            env_files=self._env_files(package, root),
            target_type="package",
            actions=actions,
        )

        targets = [package_target]
        if package.ecosystem is Ecosystem.PYTHON and self._entrypoints_enabled:
            targets.extend(self._python_script_targets(package, package_target, root))
        if package.ecosystem is Ecosystem.NODE and self._node_scripts_enabled:
            targets.extend(self._node_script_targets(package, actions))
        return targets

    def _python_script_targets(
        self, package: PackageInfo, package_target: TargetInfo, root: Path
    ) -> List[TargetInfo]:
        extra_excludes = self.config.entrypoints.exclude_dirs if self.config else []
        targets: List[TargetInfo] = []
        for entrypoint in detect_python_entrypoints(package.absolute_path, root, extra_excludes):
            targets.append(
                TargetInfo(
                    name=entrypoint.name,
                    path=entrypoint.directory,
                    language=package.language,
                    version=package.version,
                    framework=package.framework,
                    package_manager=package.package_manager,
                    dependency_files=list(package_target.dependency_files),
                    env_files=list(package_target.env_files),
                    entrypoint=entrypoint.relative_path,
                    target_type="script",
                    internal_dependencies=entrypoint.internal_dependencies or None,
                    actions=self.synthesizer.synthesize_script(entrypoint, package),
                )
            )
        return targets

    def _node_script_targets(self, package: PackageInfo, actions: ActionPipeline) -> List[TargetInfo]:
        try:
            scripts = node_scripts(package.absolute_path)
        except ManifestError as exc:
            self.logger.error("Could not read package.json for script targets at %s: %s", exc.path, exc.detail)
            return []

        return [
            TargetInfo(
                name=f"{package.name}-{script_name}",
                path=package.repo_relative_path,
                language=package.language,
                framework=package.framework,
                package_manager=package.package_manager,
                target_type="script",
                actions=self.synthesizer.synthesize_node_script(package, actions, script_name),
            )
            for script_name in scripts
        ]

    def _dependency_files(self, package: PackageInfo, root: Path) -> List[str]:
        candidates = DEPENDENCY_FILES.get(package.ecosystem, ())
        return [
            relative_posix(package.absolute_path / name, root)
            for name in candidates
            if (package.absolute_path / name).is_file()
        ]

    def _env_files(self, package: PackageInfo, root: Path) -> List[str]:
        return [
            relative_posix(package.absolute_path / name, root)
            for name in self._env_file_names
            if (package.absolute_path / name).is_file()
        ]

    @property
    def _env_file_names(self) -> Sequence[str]:
        if self.config is not None:
            return self.config.env_files
        return DEFAULT_ENV_FILES

    @property
    def _entrypoints_enabled(self) -> bool:
        return self.config is None or self.config.entrypoints.enabled

    @property
    def _node_scripts_enabled(self) -> bool:
        return self.config is None or self.config.node.script_targets
