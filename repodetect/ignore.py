"""Gitignore-style path filtering used while walking a repository."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from .logging import get_logger

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "node_modules",
    ".git",
    ".svn",
    ".hg",
    "target",
    "build",
    "dist",
    "out",
    ".next",
    ".nuxt",
    "coverage",
    ".cache",
    "tmp",
    "temp",
    ".tmp",
    ".temp",
    "__pycache__",
    "*.pyc",
    ".pytest_cache",
    ".venv",
    "venv",
    "env",
    "Pods",
    "DerivedData",
    "vendor",
)

logger = get_logger("ignore")


@dataclass(frozen=True)
class IgnoreRule:
    """A single ignore pattern parsed from the defaults, .gitignore or config."""

    pattern: str
    negated: bool = False
    directory_only: bool = False

    def matches(self, rel_path: str) -> bool:
        if not self.pattern:
            return False
        if self.pattern == "*":
            return True
        if rel_path == self.pattern:
            return True
        # Directory rules cover the directory and everything below it.
        if self.directory_only and f"/{self.pattern}/" in f"/{rel_path}/":
            return True

        segments = rel_path.split("/")
        if self.pattern in segments:
            return True

        if "*" in self.pattern:
            regex = re.compile(self.pattern.replace("*", ".*"))
            if any(regex.search(segment) for segment in segments):
                return True

        if "/" in self.pattern and self.pattern in rel_path:
            return True
        return False


def build_rule(line: str) -> IgnoreRule | None:
    """Parse one gitignore line into a rule, or ``None`` for blanks and comments."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    negated = line.startswith("!")
    if negated:
        line = line[1:]

    directory_only = line.endswith("/")
    if directory_only:
        line = line[:-1]

    if not line:
        return None
    return IgnoreRule(pattern=line, negated=negated, directory_only=directory_only)


def _default_rules() -> List[IgnoreRule]:
    return [
        IgnoreRule(pattern=pattern, directory_only="." not in pattern)
        for pattern in DEFAULT_IGNORE_PATTERNS
    ]


def _parse_ignore_file(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping unreadable ignore file %s: %s", path, exc)
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        rule = build_rule(raw_line)
        if rule is not None:
            rules.append(rule)
    return rules


class IgnoreMatcher:
    """Decides whether a path below the repository root should be skipped."""

    def __init__(self, root: Path, rules: Sequence[IgnoreRule]) -> None:
        self.root = Path(root).resolve()
        self.rules = list(rules)

    @classmethod
    def for_repository(
        cls, root: Path, extra_patterns: Iterable[str] = ()
    ) -> "IgnoreMatcher":
        """Collect defaults, .gitignore, .git/info/exclude and extra patterns in order."""
        root = Path(root)
        rules = _default_rules()
        rules.extend(_parse_ignore_file(root / ".gitignore"))
        rules.extend(_parse_ignore_file(root / ".git" / "info" / "exclude"))
        for pattern in extra_patterns:
            rule = build_rule(pattern)
            if rule is not None:
                rules.append(rule)
        return cls(root, rules)

    def relative(self, path: Union[str, Path]) -> str:
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                rel = os.path.relpath(candidate, self.root)
            except ValueError:
                return candidate.as_posix()
        else:
            rel = str(candidate)
        rel = rel.replace(os.sep, "/")
        return "" if rel == "." else rel

    def should_ignore(self, path: Union[str, Path]) -> bool:
        rel_path = self.relative(path)
        if not rel_path:
            return False

        ignored = False
        for rule in self.rules:
            if rule.matches(rel_path):
                ignored = not rule.negated
        return ignored


__all__ = ["DEFAULT_IGNORE_PATTERNS", "IgnoreMatcher", "IgnoreRule", "build_rule"]
