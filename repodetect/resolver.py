"""Resolution of human-typed target specifiers against the target map."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Tuple

from .logging import get_logger
from .models import TargetInfo


class TargetNotFound(RuntimeError):
    """Raised when no target satisfies a specifier."""

    def __init__(self, specifier: Optional[str], current_path: str, targets: Mapping[str, TargetInfo]) -> None:
        self.specifier = specifier
        self.current_path = current_path
        self.candidates = list(targets)
        if targets:
            available = "\n".join(
                f"  {address} ({target.name}) - path: {target.path}"
                for address, target in targets.items()
            )
            message = (
                f'Target "{specifier}" not found.\n'
                f"Current path: {current_path or '<root>'}\n"
                f"Available targets:\n{available}"
            )
        else:
            message = "No targets found in repository"
        super().__init__(message)


@dataclass(frozen=True)
class _Query:
    raw: str
    normalized: str
    current_path: str

    @property
    def remainder(self) -> str:
        return self.raw[2:]


Rule = Callable[[_Query, str, TargetInfo], bool]


def _exact_address(query: _Query, address: str, target: TargetInfo) -> bool:
    return address in (query.raw, query.normalized)


def _double_slash(query: _Query, address: str, target: TargetInfo) -> bool:
    if not query.raw.startswith("//"):
        return False
    remainder = query.remainder
    return (
        target.path == remainder
        or address == f"{remainder}:{target.name}"
        or address == remainder
    )


def _package_path(query: _Query, address: str, target: TargetInfo) -> bool:
    return target.path != "" and target.path in (query.raw, query.normalized)


def _current_directory_name(query: _Query, address: str, target: TargetInfo) -> bool:
    if not query.raw.startswith(":"):
        return False
    return target.path == query.current_path and target.name == query.raw[1:]


def _bare_name(query: _Query, address: str, target: TargetInfo) -> bool:
    if "/" in query.raw or ":" in query.raw:
        return False
    return target.name in (query.raw, query.normalized)


def _root_name_fallback(query: _Query, address: str, target: TargetInfo) -> bool:
    return query.raw.startswith("//") and address == f":{query.remainder}"


# Each target in map order is checked against every rule; the first target
# satisfying any of them wins.
RULES: Tuple[Tuple[str, Rule], ...] = (
    ("address", _exact_address),
    ("double-slash", _double_slash),
    ("path", _package_path),
    ("current-directory", _current_directory_name),
    ("name", _bare_name),
)

# Second pass, only consulted when no target satisfied RULES.
FALLBACK_RULES: Tuple[Tuple[str, Rule], ...] = (("root-name", _root_name_fallback),)


def current_path_for(cwd: Optional[str | Path], repo_path: str | Path) -> str:
    """Return ``cwd`` relative to the repository as a POSIX path, ``""`` at root."""
    if cwd is None:
        return ""
    rel = os.path.relpath(Path(cwd).resolve(), Path(repo_path).resolve())
    rel = rel.replace(os.sep, "/")
    return "" if rel == "." else rel


class TargetResolver:
    """Maps a specifier and the caller's directory onto one target."""

    def __init__(
        self,
        rules: Iterable[Tuple[str, Rule]] = RULES,
        fallback_rules: Iterable[Tuple[str, Rule]] = FALLBACK_RULES,
    ) -> None:
        self.rules = tuple(rules)
        self.fallback_rules = tuple(fallback_rules)
        self.logger = get_logger("resolver")

    def resolve(
        self,
        specifier: Optional[str],
        cwd: Optional[str | Path],
        targets: Mapping[str, TargetInfo],
        repo_path: Optional[str | Path] = None,
    ) -> TargetInfo:
        """Return the target ``specifier`` names, or the default target when it is empty.

        ``cwd`` may be absolute (made relative to ``repo_path``) or already
        repository-relative.
        """
        current_path = self._current_path(cwd, repo_path)
        if not targets:
            raise TargetNotFound(specifier, current_path, targets)

        if not specifier:
            return self._default(current_path, targets)

        normalized = specifier[2:] if specifier.startswith("./") else specifier
        query = _Query(raw=specifier, normalized=normalized, current_path=current_path)
        for rules in (self.rules, self.fallback_rules):
            target = self._first_match(query, targets, rules)
            if target is not None:
                return target

        raise TargetNotFound(specifier, current_path, targets)

    def _first_match(
        self,
        query: _Query,
        targets: Mapping[str, TargetInfo],
        rules: Tuple[Tuple[str, Rule], ...],
    ) -> Optional[TargetInfo]:
        for address, target in targets.items():
            for rule_name, rule in rules:
                if rule(query, address, target):
                    self.logger.debug("Specifier %r matched %s via %s rule", query.raw, address, rule_name)
                    return target
        return None

    def _default(self, current_path: str, targets: Mapping[str, TargetInfo]) -> TargetInfo:
        for target in targets.values():
            if target.path == current_path:
                return target
        for address, target in targets.items():
            if address.startswith(":"):
                return target
        return next(iter(targets.values()))

    @staticmethod
    def _current_path(cwd: Optional[str | Path], repo_path: Optional[str | Path]) -> str:
        if cwd is None:
            return ""
        if repo_path is not None and Path(cwd).is_absolute():
            return current_path_for(cwd, repo_path)
        rel = Path(cwd).as_posix()
        return "" if rel in (".", "") else rel.strip("/")

