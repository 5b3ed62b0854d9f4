"""Analyzer for PHP packages declared by composer.json."""

from __future__ import annotations

from pathlib import Path

from ..models import Ecosystem, PackageInfo
from .base import ManifestAnalyzer
from .utils import detect_php_framework, load_json


class PhpAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.PHP
    manifest_files = ("composer.json",)

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        composer = load_json(manifest_path)
        name = composer.get("name")
        version = composer.get("version")
        return self._package(
            manifest_path,
            repo_root,
            language="php",
            declared_name=name.split("/")[-1] if isinstance(name, str) else None,
            framework=detect_php_framework(composer),
            package_manager="composer",
            version=version if isinstance(version, str) else None,
        )
