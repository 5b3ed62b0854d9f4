"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, List, Mapping

from repodetect.models import PackageInfo, ProjectContext
from repodetect.orchestrator import Orchestrator
from repodetect.repo_scanner import PackageScanner


class RepoBuilder:
    """Utility for writing files into a throwaway repository and re-detecting it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._scanner = PackageScanner()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_json(self, relative: str, payload: Mapping[str, Any]) -> None:
        """Write a JSON document such as a package.json or composer.json."""
        self.write({relative: json.dumps(payload, indent=2) + "\n"})

    def scan(self) -> List[PackageInfo]:
        """Return the packages found in the repository."""
        return self._scanner.scan(self.root)

    def detect(self, **kwargs: Any) -> ProjectContext:
        """Run full detection against the repository."""
        return Orchestrator().detect(self.root, **kwargs)

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder"]
