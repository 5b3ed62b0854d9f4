"""Manifest analyzer implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Set, Tuple

from .base import ManifestAnalyzer, ManifestError
from .go import GoAnalyzer
from .java import GradleAnalyzer, MavenAnalyzer
from .node import NodeAnalyzer
from .php import PhpAnalyzer
from .python import PythonAnalyzer
from .ruby import RubyAnalyzer
from .rust import RustAnalyzer

_ENTRY_POINT_GROUP = "repodetect.analyzers"

_BUILTIN_FACTORIES: Dict[str, Callable[[], ManifestAnalyzer]] = {
    "node": NodeAnalyzer,
    "rust": RustAnalyzer,
    "go": GoAnalyzer,
    "java-maven": MavenAnalyzer,
    "java-gradle": GradleAnalyzer,
    "php": PhpAnalyzer,
    "ruby": RubyAnalyzer,
    "python": PythonAnalyzer,
}

# Manifest files in detection priority order.
MANIFEST_PRIORITY: Tuple[str, ...] = (
    "package.json",
    "Cargo.toml",
    "go.mod",
    "pom.xml",
    "build.gradle",
    "build.gradle.kts",
    "composer.json",
    "Gemfile",
    "setup.py",
    "pyproject.toml",
    "requirements.txt",
    "Pipfile",
)


def discover_analyzers() -> List[ManifestAnalyzer]:
    """Return the built-in analyzers followed by any registered plugins."""

    analyzers: List[ManifestAnalyzer] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], ManifestAnalyzer]) -> None:
        key = name.lower()
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, ManifestAnalyzer):
            raise TypeError(f"Analyzer factory for '{name}' did not return a ManifestAnalyzer")
        analyzers.append(instance)
        seen.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load analyzer entry point '{entry.name}': {exc}") from exc
        _add(entry.name, lambda obj=loaded: _coerce_analyzer(obj))

    return analyzers


def manifest_table(analyzers: Iterable[ManifestAnalyzer]) -> List[Tuple[str, ManifestAnalyzer]]:
    """Pair each manifest filename with its analyzer, in detection priority order."""
    by_manifest: Dict[str, ManifestAnalyzer] = {}
    extra: List[str] = []
    for analyzer in analyzers:
        for manifest in analyzer.manifest_files:
            if manifest in by_manifest:
                continue
            by_manifest[manifest] = analyzer
            if manifest not in MANIFEST_PRIORITY:
                extra.append(manifest)

    ordered = [name for name in MANIFEST_PRIORITY if name in by_manifest] + extra
    return [(name, by_manifest[name]) for name in ordered]


def _coerce_analyzer(obj: object) -> ManifestAnalyzer:
    if isinstance(obj, ManifestAnalyzer):
        return obj
    if isinstance(obj, type) and issubclass(obj, ManifestAnalyzer):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, ManifestAnalyzer):
            return instance
    raise TypeError("Analyzer entry point must be a ManifestAnalyzer subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "MANIFEST_PRIORITY",
    "ManifestAnalyzer",
    "ManifestError",
    "discover_analyzers",
    "manifest_table",
]
