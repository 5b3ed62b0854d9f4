"""Base classes for manifest analyzers."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple

from ..models import Ecosystem, PackageInfo


class ManifestError(RuntimeError):
    """Raised when a manifest cannot be read or parsed."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Failed to parse {path}: {detail}")
        self.path = path
        self.detail = detail


class ManifestAnalyzer(ABC):
    """Contract for analyzers that turn one manifest file into a PackageInfo."""

    ecosystem: Ecosystem
    manifest_files: Tuple[str, ...] = ()

    @abstractmethod
    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        """Extract the package facts declared by ``manifest_path``."""

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestError(path, str(exc)) from exc

    def _package(
        self,
        manifest_path: Path,
        repo_root: Path,
        *,
        language: str,
        declared_name: Optional[str] = None,
        framework: Optional[str] = None,
        package_manager: Optional[str] = None,
        version: Optional[str] = None,
    ) -> PackageInfo:
        package_dir = manifest_path.parent
        return PackageInfo(
            absolute_path=package_dir,
            repo_relative_path=relative_posix(package_dir, repo_root),
            ecosystem=self.ecosystem,
            manifest_file=manifest_path.name,
            language=language,
            declared_name=declared_name or None,
            framework=framework,
            package_manager=package_manager,
            version=version,
        )


def relative_posix(path: Path, root: Path) -> str:
    """Return ``path`` relative to ``root`` as a POSIX string, ``""`` for the root."""
    rel = os.path.relpath(path, root).replace(os.sep, "/")
    return "" if rel == "." else rel
