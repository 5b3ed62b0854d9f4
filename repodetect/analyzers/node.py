"""Analyzer for Node.js packages declared by package.json."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from ..models import Ecosystem, PackageInfo
from .base import ManifestAnalyzer
from .utils import (
    detect_node_framework,
    detect_node_package_manager,
    load_json,
    string_map,
)


class NodeAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.NODE
    manifest_files = ("package.json",)

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        package_json = load_json(manifest_path)
        package_dir = manifest_path.parent
        name = package_json.get("name")
        version = package_json.get("version")
        return self._package(
            manifest_path,
            repo_root,
            language=detect_javascript_language(package_json, package_dir),
            declared_name=name if isinstance(name, str) else None,
            framework=detect_node_framework(package_json),
            package_manager=detect_node_package_manager(package_dir, repo_root),
            version=version if isinstance(version, str) else None,
        )


def detect_javascript_language(package_json: Dict[str, Any], package_dir: Path) -> str:
    if (package_dir / "tsconfig.json").exists():
        return "typescript"
    if string_map(package_json.get("devDependencies")).get("typescript"):
        return "typescript"
    if string_map(package_json.get("dependencies")).get("typescript"):
        return "typescript"
    return "javascript"
