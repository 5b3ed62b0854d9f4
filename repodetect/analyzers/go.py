"""Analyzer for Go modules declared by go.mod."""

from __future__ import annotations

import re
from pathlib import Path

from ..models import Ecosystem, PackageInfo
from .base import ManifestAnalyzer

_MODULE = re.compile(r"module\s+(\S+)")


class GoAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.GO
    manifest_files = ("go.mod",)

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        content = self._read(manifest_path)
        match = _MODULE.search(content)
        module = match.group(1) if match else "unknown"
        return self._package(
            manifest_path,
            repo_root,
            language="go",
            declared_name=module.rstrip("/").split("/")[-1],
            package_manager="go",
        )
