"""Tests for the per-ecosystem manifest analyzers."""

from __future__ import annotations

import pytest

from repodetect.analyzers import MANIFEST_PRIORITY, ManifestError, discover_analyzers, manifest_table
from repodetect.analyzers.go import GoAnalyzer
from repodetect.analyzers.java import GradleAnalyzer, MavenAnalyzer
from repodetect.analyzers.node import NodeAnalyzer
from repodetect.analyzers.php import PhpAnalyzer
from repodetect.analyzers.python import PythonAnalyzer
from repodetect.analyzers.ruby import RubyAnalyzer
from repodetect.analyzers.utils import detect_node_package_manager
from repodetect.models import Ecosystem
from tests._fixtures.repo_builder import RepoBuilder


def test_manifest_table_follows_detection_priority() -> None:
    table = manifest_table(discover_analyzers())
    assert tuple(name for name, _ in table) == MANIFEST_PRIORITY


def test_node_language_framework_and_version(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json(
        "web/package.json",
        {
            "name": "web",
            "version": "1.2.3",
            "dependencies": {"react": "^18.0.0", "next": "14.0.0"},
            "devDependencies": {"typescript": "^5.0.0"},
        },
    )
    root = repo_builder.path()

    info = NodeAnalyzer().analyze(root / "web" / "package.json", root)

    assert info.name == "web"
    assert info.version == "1.2.3"
    assert info.language == "typescript"
    assert info.framework == "next"
    assert info.package_manager == "npm"
    assert info.repo_relative_path == "web"


def test_node_tsconfig_marks_typescript(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "app"})
    repo_builder.write({"tsconfig.json": "{}\n"})
    root = repo_builder.path()

    info = NodeAnalyzer().analyze(root / "package.json", root)

    assert info.language == "typescript"
    assert info.repo_relative_path == ""


def test_node_angular_core_counts_as_angular(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "ui", "dependencies": {"@angular/core": "17", "react": "18"}})
    root = repo_builder.path()

    assert NodeAnalyzer().analyze(root / "package.json", root).framework == "angular"


def test_node_malformed_json_names_the_file(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"package.json": '{"name": "x",}'})
    root = repo_builder.path()

    with pytest.raises(ManifestError) as excinfo:
        NodeAnalyzer().analyze(root / "package.json", root)

    assert "package.json" in str(excinfo.value)
    assert "JSON syntax error" in str(excinfo.value)


def test_package_manager_prefers_repo_root_lockfile(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"pnpm-lock.yaml": "", "apps/site/yarn.lock": "", "apps/site/package.json": "{}"})
    root = repo_builder.path()

    assert detect_node_package_manager(root / "apps" / "site", root) == "pnpm"


def test_package_manager_checks_package_then_ancestors(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"apps/bun.lockb": "", "apps/site/package.json": "{}"})
    root = repo_builder.path()

    assert detect_node_package_manager(root / "apps" / "site", root) == "bun"
    assert detect_node_package_manager(root / "other", root) == "npm"


def test_lockfiles_outside_the_repository_are_ignored(repo_builder: RepoBuilder) -> None:
    root = repo_builder.path()
    (root.parent / "yarn.lock").write_text("", encoding="utf-8")
    repo_builder.write_json("package.json", {"name": "app"})
    repo_builder.write_json("packages/ui/package.json", {"name": "ui"})

    context = repo_builder.detect()

    assert detect_node_package_manager(root, root) == "npm"
    assert context.targets[":app"].package_manager == "npm"
    assert context.targets["packages/ui:ui"].package_manager == "npm"


def test_lockfile_priority_within_one_directory(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"package-lock.json": "{}", "yarn.lock": ""})
    root = repo_builder.path()

    assert detect_node_package_manager(root, root) == "yarn"


def test_go_module_name_is_last_segment(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"services/auth/go.mod": "module github.com/acme/platform/auth\n"})
    root = repo_builder.path()

    info = GoAnalyzer().analyze(root / "services" / "auth" / "go.mod", root)

    assert info.name == "auth"
    assert info.ecosystem is Ecosystem.GO
    assert info.package_manager == "go"


def test_maven_uses_first_artifact_id(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "pom.xml": """
            <project>
              <artifactId>billing</artifactId>
              <dependencies>
                <dependency><artifactId>junit</artifactId></dependency>
              </dependencies>
            </project>
            """
        }
    )
    root = repo_builder.path()

    info = MavenAnalyzer().analyze(root / "pom.xml", root)

    assert info.name == "billing"
    assert info.framework == "maven"
    assert info.language == "java"


def test_gradle_name_from_settings_and_kotlin_language(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "mobile/build.gradle.kts": 'plugins { kotlin("jvm") }\n',
            "mobile/settings.gradle.kts": 'rootProject.name = "mobile-app"\n',
            "desktop/build.gradle": "apply plugin: 'java'\n",
        }
    )
    root = repo_builder.path()

    mobile = GradleAnalyzer().analyze(root / "mobile" / "build.gradle.kts", root)
    desktop = GradleAnalyzer().analyze(root / "desktop" / "build.gradle", root)

    assert mobile.name == "mobile-app"
    assert mobile.language == "kotlin"
    assert desktop.name == "desktop"
    assert desktop.language == "java"


def test_php_composer_name_and_framework(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json(
        "composer.json",
        {"name": "acme/shop", "require": {"symfony/framework-bundle": "^7.0"}},
    )
    root = repo_builder.path()

    info = PhpAnalyzer().analyze(root / "composer.json", root)

    assert info.name == "shop"
    assert info.framework == "symfony"
    assert info.package_manager == "composer"


def test_ruby_uses_directory_name_and_gemfile_framework(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"blog/Gemfile": "source 'https://rubygems.org'\ngem 'rails', '~> 7.1'\n"})
    root = repo_builder.path()

    info = RubyAnalyzer().analyze(root / "blog" / "Gemfile", root)

    assert info.name == "blog"
    assert info.framework == "rails"
    assert info.package_manager == "bundle"


def test_python_pyproject_name_and_version(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "pyproject.toml": '[project]\nname = "toolkit"\nversion = "2.0.1"\n',
            "requirements.txt": "fastapi==0.110\n",
        }
    )
    root = repo_builder.path()

    info = PythonAnalyzer().analyze(root / "pyproject.toml", root)

    assert info.name == "toolkit"
    assert info.version == "2.0.1"
    assert info.framework == "fastapi"
    assert info.package_manager == "pip"


def test_python_pipfile_falls_back_to_directory_name(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"worker/Pipfile": "[packages]\n"})
    root = repo_builder.path()

    info = PythonAnalyzer().analyze(root / "worker" / "Pipfile", root)

    assert info.name == "worker"
    assert info.framework is None


def test_discover_analyzers_covers_each_ecosystem_once() -> None:
    ecosystems = [analyzer.ecosystem for analyzer in discover_analyzers()[: len(Ecosystem)]]

    assert sorted(e.value for e in ecosystems) == sorted(e.value for e in Ecosystem)
