from __future__ import annotations

from repodetect.config import EntrypointConfig, NodeConfig, RepoDetectConfig
from repodetect.models import ActionCategory
from repodetect.targets import TargetBuilder
from tests._fixtures.repo_builder import RepoBuilder

MAIN = 'if __name__ == "__main__":\n    main()\n'


def test_package_targets_are_keyed_by_address(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "web"})
    repo_builder.write({"services/auth/go.mod": "module example.com/auth\n"})

    targets = TargetBuilder().build(repo_builder.scan(), repo_builder.path())

    assert list(targets) == [":web", "services/auth:auth"]
    assert targets["services/auth:auth"].target_type == "package"
    assert targets["services/auth:auth"].dependency_files == ["services/auth/go.mod"]


def test_python_script_targets_inherit_package_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "tools/requirements.txt": "requests\n",
            "tools/.env": "TOKEN=abc\n",
            "tools/helpers.py": "",
            "tools/sync/run.py": "import helpers\n\n" + MAIN,
            "tools/lib.py": "",
        }
    )
    root = repo_builder.path()

    targets = TargetBuilder().build(repo_builder.scan(), root)

    assert list(targets) == ["tools:tools", "tools/sync:run"]
    script = targets["tools/sync:run"]
    assert script.target_type == "script"
    assert script.entrypoint == "tools/sync/run.py"
    assert script.dependency_files == ["tools/requirements.txt"]
    assert script.env_files == ["tools/.env"]
    assert script.language == "python"
    assert script.internal_dependencies is None
    assert [a.command for a in script.actions.get(ActionCategory.DEV)] == ["python run.py"]


def test_script_internal_dependencies_are_recorded(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "requirements.txt": "",
            "util.py": "",
            "main.py": "import util\n\n" + MAIN,
        }
    )
    root = repo_builder.path()

    targets = TargetBuilder().build(repo_builder.scan(), root)

    assert targets[":main"].internal_dependencies == ["util.py"]
    assert targets[":main"].entrypoint == "main.py"


def test_node_script_targets(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json(
        "frontend/package.json",
        {"name": "web", "scripts": {"build": "vite build", "storybook": "storybook dev"}},
    )
    repo_builder.write({"frontend/.env.local": "API_URL=http://localhost\n"})

    targets = TargetBuilder().build(repo_builder.scan(), repo_builder.path())

    assert list(targets) == ["frontend:web", "frontend:web-build", "frontend:web-storybook"]
    package = targets["frontend:web"]
    assert package.env_files == ["frontend/.env.local"]
    assert package.dependency_files == ["frontend/package.json"]

    storybook = targets["frontend:web-storybook"]
    assert storybook.target_type == "script"
    assert storybook.dependency_files == []
    assert storybook.env_files == []
    assert [a.command for a in storybook.actions.get(ActionCategory.DEV)] == ["npm run storybook"]
    assert [a.command for a in storybook.actions.get(ActionCategory.BUILD)] == ["npm run build"]


def test_config_can_disable_script_targets(repo_builder: RepoBuilder) -> None:
    repo_builder.write_json("package.json", {"name": "web", "scripts": {"dev": "vite"}})
    repo_builder.write({"py/requirements.txt": "", "py/cli.py": MAIN})
    root = repo_builder.path()
    config = RepoDetectConfig(
        root=root,
        entrypoints=EntrypointConfig(enabled=False),
        node=NodeConfig(script_targets=False),
    )

    targets = TargetBuilder(config=config).build(repo_builder.scan(), root)

    assert list(targets) == [":web", "py:py"]


def test_config_env_files_and_entrypoint_excludes(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "requirements.txt": "",
            ".env.production": "KEY=1\n",
            ".env": "OTHER=2\n",
            "jobs/nightly.py": MAIN,
            "cli.py": MAIN,
        }
    )
    root = repo_builder.path()
    config = RepoDetectConfig(
        root=root,
        env_files=[".env.production"],
        entrypoints=EntrypointConfig(exclude_dirs=["jobs"]),
    )

    targets = TargetBuilder(config=config).build(repo_builder.scan(), root)

    assert list(targets) == [":repo", ":cli"]
    assert targets[":repo"].env_files == [".env.production"]


def test_later_package_wins_on_address_collision(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "svc/setup.py": "setup(name='svc')\n",
            "svc/requirements.txt": "flask\n",
        }
    )

    packages = repo_builder.scan()
    targets = TargetBuilder().build(packages, repo_builder.path())

    assert len(packages) == 2
    assert list(targets) == ["svc:svc"]
    assert targets["svc:svc"].framework == "flask"


def test_empty_package_list_builds_no_targets(repo_builder: RepoBuilder) -> None:
    assert TargetBuilder().build([], repo_builder.path()) == {}
