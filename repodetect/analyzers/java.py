"""Analyzers for Maven and Gradle projects."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from ..models import Ecosystem, PackageInfo
from .base import ManifestAnalyzer

_ARTIFACT_ID = re.compile(r"<artifactId>([^<]+)</artifactId>")
_ROOT_PROJECT_NAME = re.compile(r"""rootProject\.name\s*=\s*['"]([^'"]+)['"]""")


class MavenAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.JAVA_MAVEN
    manifest_files = ("pom.xml",)

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        content = self._read(manifest_path)
        match = _ARTIFACT_ID.search(content)
        return self._package(
            manifest_path,
            repo_root,
            language="java",
            declared_name=match.group(1).strip() if match else None,
            framework="maven",
            package_manager="maven",
        )


class GradleAnalyzer(ManifestAnalyzer):
    ecosystem = Ecosystem.JAVA_GRADLE
    manifest_files = ("build.gradle", "build.gradle.kts")

    def analyze(self, manifest_path: Path, repo_root: Path) -> PackageInfo:
        content = self._read(manifest_path)
        name = _root_project_name(content) or self._settings_name(manifest_path.parent)
        return self._package(
            manifest_path,
            repo_root,
            language="kotlin" if manifest_path.name.endswith(".kts") else "java",
            declared_name=name or manifest_path.parent.name,
            framework="gradle",
            package_manager="gradle",
        )

    def _settings_name(self, package_dir: Path) -> Optional[str]:
        for filename in ("settings.gradle", "settings.gradle.kts"):
            settings = package_dir / filename
            if not settings.exists():
                continue
            name = _root_project_name(self._read(settings))
            if name:
                return name
        return None


def _root_project_name(content: str) -> Optional[str]:
    match = _ROOT_PROJECT_NAME.search(content)
    return match.group(1) if match else None
