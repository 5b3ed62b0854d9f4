"""Concurrent extraction of dependency and environment facts for targets."""

from __future__ import annotations

import json
import tomllib
import xml.etree.ElementTree as ET
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from .analyzers.utils import (
    parse_cargo_dependencies,
    parse_gemfile,
    parse_go_mod,
    parse_gradle_dependencies,
    parse_pom_dependencies,
    parse_pyproject_dependencies,
    parse_requirements,
    string_map,
)
from .logging import get_logger
from .models import TargetData, TargetInfo

DependencyPair = Tuple[Dict[str, str], Optional[Dict[str, str]]]

logger = get_logger("bulk")


def _package_json(text: str) -> DependencyPair:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("package.json must contain an object")
    return string_map(data.get("dependencies")), string_map(data.get("devDependencies"))


def _composer_json(text: str) -> DependencyPair:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("composer.json must contain an object")
    return string_map(data.get("require")), string_map(data.get("require-dev"))


def _requirements(text: str) -> DependencyPair:
    return parse_requirements(text), None


def _go_mod(text: str) -> DependencyPair:
    return parse_go_mod(text), None


def _gemfile(text: str) -> DependencyPair:
    return parse_gemfile(text), None


DEPENDENCY_PARSERS: Dict[str, Callable[[str], DependencyPair]] = {
    "package.json": _package_json,
    "requirements.txt": _requirements,
    "pyproject.toml": parse_pyproject_dependencies,
    "go.mod": _go_mod,
    "Cargo.toml": parse_cargo_dependencies,
    "composer.json": _composer_json,
    "Gemfile": _gemfile,
    "pom.xml": parse_pom_dependencies,
    "build.gradle": parse_gradle_dependencies,
    "build.gradle.kts": parse_gradle_dependencies,
}

_PARSE_ERRORS = (
    OSError,
    UnicodeDecodeError,
    ValueError,
    tomllib.TOMLDecodeError,
    ET.ParseError,
)


def read_dependencies(target: TargetInfo, repo_path: Path) -> DependencyPair:
    """Parse the first dependency file of ``target`` that has a known reader."""
    for dependency_file in target.dependency_files:
        parser = DEPENDENCY_PARSERS.get(PurePosixPath(dependency_file).name)
        if parser is None:
            continue
        path = repo_path / dependency_file
        try:
            return parser(path.read_text(encoding="utf-8"))
        except _PARSE_ERRORS as exc:
            logger.debug("Error reading dependency file %s: %s", dependency_file, exc)
    return {}, None


def parse_env_names(text: str) -> List[str]:
    names: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export "):].lstrip()
        index = stripped.find("=")
        if index > 0:
            key = stripped[:index].strip()
            if key not in names:
                names.append(key)
    return names


def read_env_names(target: TargetInfo, repo_path: Path) -> List[str]:
    names: List[str] = []
    for env_file in target.env_files:
        try:
            text = (repo_path / env_file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping env file %s: %s", env_file, exc)
            continue
        for name in parse_env_names(text):
            if name not in names:
                names.append(name)
    return names


class BulkDataAggregator:
    """Gathers TargetData for many targets in parallel."""

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self.max_workers = max_workers

    def get_bulk_data(
        self, targets: Mapping[str, TargetInfo], repo_path: Union[str, Path]
    ) -> Dict[str, TargetData]:
        """Return dependency and env-name data keyed by target address."""
        repo = Path(repo_path).expanduser().resolve()
        if not targets:
            return {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            dependency_futures = {
                address: executor.submit(read_dependencies, target, repo)
                for address, target in targets.items()
            }
            env_futures = {
                address: executor.submit(read_env_names, target, repo)
                for address, target in targets.items()
            }
            result: Dict[str, TargetData] = {}
            for address in targets:
                dependencies, dev_dependencies = dependency_futures[address].result()
                result[address] = TargetData(
                    dependencies=dependencies,
                    dev_dependencies=dev_dependencies,
                    env_names=env_futures[address].result(),
                )
        return result
