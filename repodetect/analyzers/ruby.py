"""Analyzer for Ruby projects declared by a Gemfile."""

from __future__ import annotations

from pathlib import Path

from ..models import Ecosystem, PackageInfo
from .base import ManifestAnalyzer
from .utils import detect_ruby_framework


class RubyAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.RUBY
    manifest_files = ("Gemfile",)

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        package_dir = manifest_path.parent
        return self._package(
            manifest_path,
            repo_root,
            language="ruby",
            declared_name=package_dir.name,
            framework=detect_ruby_framework(package_dir),
            package_manager="bundle",
        )
