from __future__ import annotations

from repodetect.analyzers.entrypoints import (
    detect_python_entrypoints,
    find_python_files,
    parse_python_imports,
    resolve_internal_module,
)
from tests._fixtures.repo_builder import RepoBuilder

MAIN = 'if __name__ == "__main__":\n    main()\n'


def test_only_guarded_scripts_are_entrypoints(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "cli.py": "def main():\n    pass\n\n" + MAIN,
            "helpers.py": "def helper():\n    return 1\n",
            "scripts/migrate.py": "if __name__ == '__main__':\n    run()\n",
        }
    )
    root = repo_builder.path()

    entrypoints = detect_python_entrypoints(root, root)

    assert [(e.name, e.relative_path, e.directory) for e in entrypoints] == [
        ("cli", "cli.py", ""),
        ("migrate", "scripts/migrate.py", "scripts"),
    ]


def test_excluded_directories_and_files_are_skipped(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "setup.py": MAIN,
            "conftest.py": MAIN,
            "pkg/__init__.py": MAIN,
            "tests/test_cli.py": MAIN,
            ".venv/lib/tool.py": MAIN,
            "demo.egg-info/run.py": MAIN,
            "examples/demo.py": MAIN,
            "app.py": MAIN,
        }
    )
    root = repo_builder.path()

    names = [path.name for path in find_python_files(root, ["examples"])]

    assert names == ["app.py"]


def test_parse_python_imports_handles_all_forms() -> None:
    content = """
import os
from utils.helpers import thing
from .sibling import other
# import ignored
    import indented
"""
    assert parse_python_imports(content) == ["os", "utils.helpers", ".sibling", "indented"]


def test_internal_dependencies_resolve_to_repo_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "lib/__init__.py": "",
            "lib/db.py": "",
            "tools/common.py": "",
            "tools/run.py": "import os\nimport common\nfrom lib.db import connect\nfrom lib import x\n\n" + MAIN,
        }
    )
    root = repo_builder.path()

    [entrypoint] = detect_python_entrypoints(root / "tools", root)

    assert entrypoint.name == "run"
    assert entrypoint.internal_dependencies == ["tools/common.py", "lib/__init__.py"]


def test_relative_imports_walk_up_per_extra_dot(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "pkg/shared.py": "",
            "pkg/sub/local.py": "",
            "pkg/sub/main.py": "",
        }
    )
    root = repo_builder.path()
    script = root / "pkg" / "sub" / "main.py"

    assert resolve_internal_module(".local", script, root) == "pkg/sub/local.py"
    assert resolve_internal_module("..shared", script, root) == "pkg/shared.py"
    assert resolve_internal_module(".missing", script, root) is None
