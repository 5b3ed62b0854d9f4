from __future__ import annotations

from pathlib import Path

from repodetect.models import (
    REMOVE,
    ActionCategory,
    ActionPipeline,
    CustomAction,
    Ecosystem,
    PackageInfo,
    RepositoryAction,
    TargetInfo,
    action_key,
)


def test_action_key_maps_known_and_custom_names() -> None:
    assert action_key("Build") is ActionCategory.BUILD
    assert action_key(" remove ") == REMOVE
    assert action_key(CustomAction("deploy-preview")).value == "deploy-preview"


def test_pipeline_copy_is_independent() -> None:
    pipeline = ActionPipeline()
    pipeline.add("build", RepositoryAction("make"))

    clone = pipeline.copy()
    clone.add(ActionCategory.BUILD, RepositoryAction("make install"))
    clone.add(REMOVE, RepositoryAction("pkg rm"))

    assert [a.command for a in pipeline.get("build")] == ["make"]
    assert "remove" not in pipeline
    assert "remove" in clone
    assert clone.to_dict()["remove"] == [{"command": "pkg rm"}]
    assert pipeline != clone


def test_target_serialisation_omits_unset_optionals() -> None:
    target = TargetInfo(name="web", path="frontend", language="typescript")

    data = target.to_dict()

    assert target.address == "frontend:web"
    assert "version" not in data
    assert "internal_dependencies" not in data
    assert data["target_type"] == "package"
    assert set(data["actions"]) == {category.value for category in ActionCategory}


def test_package_name_defaults_to_directory(tmp_path: Path) -> None:
    package = PackageInfo(
        absolute_path=tmp_path / "svc",
        repo_relative_path="svc",
        ecosystem=Ecosystem.RUBY,
        manifest_file="Gemfile",
        language="ruby",
    )

    assert package.name == "svc"
    assert package.manifest_path == tmp_path / "svc" / "Gemfile"
