"""Repository walking that turns manifest files into package records."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .analyzers import ManifestAnalyzer, ManifestError, discover_analyzers, manifest_table
from .ignore import IgnoreMatcher
from .logging import get_logger
from .models import Ecosystem, PackageInfo


class PackageScanner:
    """Walks the repository depth-first and analyzes every manifest it meets."""

    def __init__(
        self,
        matcher: Optional[IgnoreMatcher] = None,
        analyzers: Optional[Sequence[ManifestAnalyzer]] = None,
    ) -> None:
        self.matcher = matcher
        self._table: List[Tuple[str, ManifestAnalyzer]] = manifest_table(
            analyzers if analyzers is not None else discover_analyzers()
        )
        self.logger = get_logger("scanner")

    def scan(self, root: str | Path, matcher: Optional[IgnoreMatcher] = None) -> List[PackageInfo]:
        """Return every package found below ``root`` in depth-first, sorted order."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        matcher = matcher or self.matcher or IgnoreMatcher.for_repository(root_path)
        packages: List[PackageInfo] = []
        self._scan_directory(root_path, root_path, matcher, packages)
        self.logger.debug("Found %d package(s) under %s", len(packages), root_path)
        return packages

    def _scan_directory(
        self,
        directory: Path,
        root: Path,
        matcher: IgnoreMatcher,
        packages: List[PackageInfo],
    ) -> None:
        if matcher.should_ignore(directory):
            return

        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError as exc:
            self.logger.debug("Skipping directory %s: %s", directory, exc)
            return

        filenames = {entry.name for entry in entries if _is_file(entry)}
        for manifest, analyzer in self._table:
            if manifest not in filenames:
                continue
            package = self._analyze(analyzer, directory / manifest, root)
            if package is not None:
                packages.append(package)
            if analyzer.ecosystem is not Ecosystem.PYTHON:
                break

        for entry in entries:
            if _is_dir(entry):
                self._scan_directory(Path(entry.path), root, matcher, packages)

    def _analyze(
        self, analyzer: ManifestAnalyzer, manifest_path: Path, root: Path
    ) -> Optional[PackageInfo]:
        try:
            package = analyzer.analyze(manifest_path, root)
        except ManifestError as exc:
            self.logger.error("Error analyzing package file %s: %s", manifest_path, exc.detail)
            return None
        self.logger.debug(
            "Detected %s package '%s' at %s",
            package.ecosystem.value,
            package.name,
            package.repo_relative_path or "<root>",
        )
        return package


def _is_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False
