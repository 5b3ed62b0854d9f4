"""Detect runnable Python entrypoint scripts and their in-repo imports."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..logging import get_logger
from .base import relative_posix

MAIN_BLOCK = re.compile(r"""if\s+__name__\s*==\s*["']__main__["']\s*:""")

EXCLUDED_FILES = frozenset({"__init__.py", "setup.py", "conftest.py"})

EXCLUDED_DIRS: tuple[str, ...] = (
    "__pycache__",
    ".pytest_cache",
    "tests",
    "test",
    ".git",
    "venv",
    "env",
    ".venv",
    ".env",
    "virtualenv",
    "ENV",
    "node_modules",
    ".tox",
    "dist",
    "build",
    "*.egg-info",
    ".coverage",
    "htmlcov",
)

_IMPORT = re.compile(r"^import\s+([a-zA-Z_][a-zA-Z0-9_.]*)")
_FROM_IMPORT = re.compile(r"^from\s+([a-zA-Z_][a-zA-Z0-9_.]*)\s+import")
_RELATIVE_IMPORT = re.compile(r"^from\s+(\.+[a-zA-Z_][a-zA-Z0-9_.]*)\s+import")

logger = get_logger("analyzers.entrypoints")


@dataclass
class EntrypointScript:
    """A Python file guarded by ``if __name__ == "__main__":``."""

    name: str
    path: Path
    relative_path: str
    internal_dependencies: List[str] = field(default_factory=list)

    @property
    def directory(self) -> str:
        return os.path.dirname(self.relative_path)


def _is_excluded_dir(name: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if "*" in pattern:
            if re.search(pattern.replace("*", ".*"), name):
                return True
        elif name == pattern:
            return True
    return False


def find_python_files(directory: Path, extra_excludes: Iterable[str] = ()) -> List[Path]:
    """Return candidate entrypoint files below ``directory`` in sorted walk order."""
    patterns = EXCLUDED_DIRS + tuple(extra_excludes)
    files: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(name for name in dirnames if not _is_excluded_dir(name, patterns))
        for filename in sorted(filenames):
            if filename.endswith(".py") and filename not in EXCLUDED_FILES:
                files.append(Path(dirpath) / filename)
    return files


def detect_python_entrypoints(
    package_dir: Path,
    repo_root: Path,
    extra_excludes: Iterable[str] = (),
) -> List[EntrypointScript]:
    """Find every script under ``package_dir`` that carries a ``__main__`` guard."""
    entrypoints: List[EntrypointScript] = []
    for path in find_python_files(package_dir, extra_excludes):
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping file %s: %s", path, exc)
            continue
        if not MAIN_BLOCK.search(content):
            continue
        entrypoints.append(
            EntrypointScript(
                name=path.stem,
                path=path,
                relative_path=relative_posix(path, repo_root),
                internal_dependencies=detect_internal_dependencies(content, path, repo_root),
            )
        )
    return entrypoints


def parse_python_imports(content: str) -> List[str]:
    imports: List[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        for pattern in (_IMPORT, _FROM_IMPORT, _RELATIVE_IMPORT):
            match = pattern.match(stripped)
            if match:
                imports.append(match.group(1))
                break
    return imports


def detect_internal_dependencies(content: str, script_path: Path, repo_root: Path) -> List[str]:
    """Resolve imports of ``script_path`` that point at files inside the repository."""
    resolved: List[str] = []
    for module in parse_python_imports(content):
        hit = resolve_internal_module(module, script_path, repo_root)
        if hit and hit not in resolved:
            resolved.append(hit)
    return resolved


def resolve_internal_module(module: str, script_path: Path, repo_root: Path) -> Optional[str]:
    script_dir = script_path.parent
    if module.startswith("."):
        candidates = _relative_candidates(module, script_dir)
    else:
        candidates = _absolute_candidates(module, script_dir, repo_root)

    root = repo_root.resolve()
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            candidate.resolve().relative_to(root)
        except ValueError:
            continue
        return relative_posix(candidate, repo_root)
    return None


def _relative_candidates(module: str, script_dir: Path) -> List[Path]:
    dots = len(module) - len(module.lstrip("."))
    module_part = module[dots:].replace(".", "/")
    target_dir = script_dir
    for _ in range(1, dots):
        if target_dir.parent == target_dir:
            break
        target_dir = target_dir.parent
    return [target_dir / f"{module_part}.py", target_dir / module_part / "__init__.py"]


def _absolute_candidates(module: str, script_dir: Path, repo_root: Path) -> List[Path]:
    candidates = [
        script_dir / f"{module}.py",
        repo_root / f"{module}.py",
        script_dir / module / "__init__.py",
        repo_root / module / "__init__.py",
    ]
    parts = module.split(".")
    for index in range(1, len(parts) + 1):
        sub_path = "/".join(parts[:index])
        candidates.extend(
            [
                script_dir / f"{sub_path}.py",
                repo_root / f"{sub_path}.py",
                script_dir / sub_path / "__init__.py",
                repo_root / sub_path / "__init__.py",
            ]
        )
    return candidates
