"""Analyzer for Python projects (setup.py, pyproject.toml, requirements.txt, Pipfile)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from ..models import Ecosystem, PackageInfo
from .base import ManifestAnalyzer
from .utils import detect_python_framework

_SETUP_NAME = re.compile(r"""name\s*=\s*['"]([^'"]*)['"]""")
_PYPROJECT_NAME = re.compile(r'name\s*=\s*"([^"]+)"')
_PYPROJECT_VERSION = re.compile(r'^version\s*=\s*"([^"]+)"', re.MULTILINE)


class PythonAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.PYTHON
    manifest_files = ("setup.py", "pyproject.toml", "requirements.txt", "Pipfile")

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        package_dir = manifest_path.parent
        name: Optional[str] = None
        version: Optional[str] = None

        if manifest_path.name == "setup.py":
            match = _SETUP_NAME.search(self._read(manifest_path))
            name = match.group(1) if match else None
        elif manifest_path.name == "pyproject.toml":
            content = self._read(manifest_path)
            match = _PYPROJECT_NAME.search(content)
            name = match.group(1) if match else None
            version_match = _PYPROJECT_VERSION.search(content)
            version = version_match.group(1) if version_match else None

        return self._package(
            manifest_path,
            repo_root,
            language="python",
            declared_name=name or package_dir.name,
            framework=detect_python_framework(package_dir),
            package_manager="pip",
            version=version,
        )
