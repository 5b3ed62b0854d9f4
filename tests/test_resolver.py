from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest

from repodetect.models import TargetInfo
from repodetect.resolver import TargetNotFound, TargetResolver, current_path_for


def _targets(*specs: tuple[str, str]) -> Dict[str, TargetInfo]:
    targets: Dict[str, TargetInfo] = {}
    for path, name in specs:
        target = TargetInfo(name=name, path=path, language="javascript")
        targets[target.address] = target
    return targets


@pytest.fixture
def targets() -> Dict[str, TargetInfo]:
    return _targets(("", "app"), ("frontend", "web"), ("services/auth", "auth"), ("docs", "web"))


def test_exact_address(targets: Dict[str, TargetInfo]) -> None:
    resolved = TargetResolver().resolve("frontend:web", "", targets)
    assert resolved.address == "frontend:web"


def test_double_slash_address_and_path(targets: Dict[str, TargetInfo]) -> None:
    resolver = TargetResolver()

    assert resolver.resolve("//frontend:web", "", targets).address == "frontend:web"
    assert resolver.resolve("//services/auth", "", targets).address == "services/auth:auth"


def test_leading_dot_slash_is_ignored(targets: Dict[str, TargetInfo]) -> None:
    assert TargetResolver().resolve("./services/auth", "", targets).name == "auth"


def test_colon_name_is_relative_to_current_directory(targets: Dict[str, TargetInfo]) -> None:
    resolver = TargetResolver()

    assert resolver.resolve(":web", "frontend", targets).address == "frontend:web"
    assert resolver.resolve(":web", "docs", targets).address == "docs:web"


def test_first_target_satisfying_any_rule_wins() -> None:
    resolver = TargetResolver()
    root_first = _targets(("", "frontend"), ("frontend", "web"))
    nested_first = _targets(("frontend", "web"), ("", "web"))

    assert resolver.resolve("frontend", "", root_first).address == ":frontend"
    assert resolver.resolve(":web", "frontend", nested_first).address == "frontend:web"
    assert resolver.resolve(":web", "", nested_first).address == ":web"


def test_colon_name_missing_in_current_directory() -> None:
    targets = _targets(("frontend", "web"))

    with pytest.raises(TargetNotFound) as excinfo:
        TargetResolver().resolve(":web", "", targets)

    message = str(excinfo.value)
    assert 'Target ":web" not found.' in message
    assert "Current path: <root>" in message
    assert "  frontend:web (web) - path: frontend" in message
    assert excinfo.value.candidates == ["frontend:web"]


def test_bare_name_picks_first_in_map_order(targets: Dict[str, TargetInfo]) -> None:
    assert TargetResolver().resolve("web", "", targets).address == "frontend:web"


def test_root_name_fallback_for_double_slash() -> None:
    targets = _targets(("", "app"), ("tools", "cli"))

    assert TargetResolver().resolve("//app", "", targets).address == ":app"


def test_default_prefers_current_directory(targets: Dict[str, TargetInfo]) -> None:
    resolver = TargetResolver()

    assert resolver.resolve(None, "services/auth", targets).address == "services/auth:auth"
    assert resolver.resolve("", "", targets).address == ":app"


def test_default_falls_back_to_root_then_first() -> None:
    resolver = TargetResolver()
    with_root = _targets(("libs/a", "a"), ("", "main"))
    without_root = _targets(("libs/a", "a"), ("libs/b", "b"))

    assert resolver.resolve(None, "docs", with_root).address == ":main"
    assert resolver.resolve(None, "docs", without_root).address == "libs/a:a"


def test_absolute_cwd_is_made_relative(tmp_path: Path, targets: Dict[str, TargetInfo]) -> None:
    cwd = tmp_path / "frontend"
    cwd.mkdir()

    resolved = TargetResolver().resolve(":web", cwd, targets, repo_path=tmp_path)

    assert resolved.address == "frontend:web"
    assert current_path_for(tmp_path, tmp_path) == ""


def test_empty_target_map_raises() -> None:
    with pytest.raises(TargetNotFound) as excinfo:
        TargetResolver().resolve("anything", "", {})

    assert str(excinfo.value) == "No targets found in repository"
