"""Analyzer for Rust crates declared by Cargo.toml."""

from __future__ import annotations

import re
from pathlib import Path

from ..models import Ecosystem, PackageInfo
from .base import ManifestAnalyzer

_NAME = re.compile(r'name\s*=\s*"([^"]+)"')
_VERSION = re.compile(r'version\s*=\s*"([^"]+)"')


class RustAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.RUST
    manifest_files = ("Cargo.toml",)

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        content = self._read(manifest_path)
        name = _NAME.search(content)
        version = _VERSION.search(content)
        return self._package(
            manifest_path,
            repo_root,
            language="rust",
            declared_name=name.group(1) if name else None,
            package_manager="cargo",
            version=version.group(1) if version else None,
        )
