"""Derivation of semantic action pipelines from package facts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .analyzers.entrypoints import EntrypointScript
from .analyzers.utils import node_scripts
from .logging import get_logger
from .models import (
    REMOVE,
    ActionCategory,
    ActionPipeline,
    Ecosystem,
    PackageInfo,
    RepositoryAction,
)

# Node script names are classified by case-insensitive substring match.
SCRIPT_CATEGORIES: Tuple[Tuple[ActionCategory, Tuple[str, ...]], ...] = (
    (ActionCategory.BUILD, ("build", "compile", "dist", "bundle")),
    (
        ActionCategory.TEST,
        ("test", "test:unit", "test:integration", "test:e2e", "spec", "jest", "mocha"),
    ),
    (ActionCategory.DEPLOY, ("deploy", "publish", "release", "ship")),
    (ActionCategory.DEV, ("dev", "serve", "watch", "development")),
    (ActionCategory.LINT, ("lint", "eslint", "tslint", "check")),
    (ActionCategory.FORMAT, ("format", "prettier", "fmt")),
    (ActionCategory.CLEAN, ("clean", "clear", "reset")),
)

_NODE_ADD: Dict[str, Tuple[str, List[str]]] = {
    "npm": ("npm install", ["--save-dev"]),
    "yarn": ("yarn add", ["--dev"]),
    "pnpm": ("pnpm add", ["--save-dev", "-w"]),
    "bun": ("bun add", ["--dev"]),
}

_NODE_REMOVE = {
    "npm": "npm uninstall",
    "yarn": "yarn remove",
    "pnpm": "pnpm remove",
    "bun": "bun remove",
}


def node_run_command(package_manager: Optional[str], script: str) -> str:
    manager = package_manager if package_manager in _NODE_ADD else "npm"
    return f"{manager} run {script}"


def classify_script(script_name: str) -> List[ActionCategory]:
    """Return every category whose keywords occur in ``script_name``."""
    lowered = script_name.lower()
    return [
        category
        for category, keywords in SCRIPT_CATEGORIES
        if any(keyword in lowered for keyword in keywords)
    ]


class ActionSynthesizer:
    """Builds the action pipeline for packages and their script targets."""

    def __init__(self) -> None:
        self.logger = get_logger("actions")
        self._handlers: Dict[Ecosystem, Callable[[PackageInfo, ActionPipeline], None]] = {
            Ecosystem.NODE: self._node,
            Ecosystem.PYTHON: self._python,
            Ecosystem.GO: self._go,
            Ecosystem.RUST: self._rust,
            Ecosystem.JAVA_MAVEN: self._maven,
            Ecosystem.JAVA_GRADLE: self._gradle,
            Ecosystem.PHP: self._php,
            Ecosystem.RUBY: self._ruby,
        }

    def synthesize(self, package: PackageInfo) -> ActionPipeline:
        """Return the pipeline for a package target."""
        pipeline = ActionPipeline()
        handler = self._handlers.get(package.ecosystem)
        if handler is not None:
            handler(package, pipeline)
        self.logger.debug("Synthesized actions for %s: %r", package.name, pipeline)
        return pipeline

    def synthesize_script(self, entrypoint: EntrypointScript, package: PackageInfo) -> ActionPipeline:
        """Return the pipeline for a Python entrypoint script target.

        Commands run from the script's own directory, so the file is referenced
        by its bare name.
        """
        pipeline = ActionPipeline()
        filename = entrypoint.path.name

        pipeline.add(ActionCategory.DEV, RepositoryAction(f"python {filename}"))
        if "test" in entrypoint.name:
            pipeline.add(ActionCategory.TEST, RepositoryAction(f"python -m pytest {filename}"))
        else:
            pipeline.add(ActionCategory.TEST, RepositoryAction(f"python -m py_compile {filename}"))

        requirements = package.absolute_path / "requirements.txt"
        if requirements.exists():
            relative = Path(os.path.relpath(requirements, entrypoint.path.parent)).as_posix()
            pipeline.add(ActionCategory.INSTALL, RepositoryAction(f"pip install -r {relative}"))

        pipeline.add(ActionCategory.LINT, RepositoryAction(f"python -m flake8 {filename}"))
        pipeline.add(ActionCategory.FORMAT, RepositoryAction(f"python -m black {filename}"))
        return pipeline

    def synthesize_node_script(
        self, package: PackageInfo, package_pipeline: ActionPipeline, script_name: str
    ) -> ActionPipeline:
        """Return the pipeline for a per-script Node target."""
        pipeline = package_pipeline.copy()
        pipeline.set(
            ActionCategory.DEV,
            [RepositoryAction(node_run_command(package.package_manager, script_name))],
        )
        return pipeline

    # ------------------------------------------------------------------
    # Node.js

    def _node(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        manager = package.package_manager if package.package_manager in _NODE_ADD else "npm"
        add_command, add_flags = _NODE_ADD[manager]

        pipeline.add(ActionCategory.INSTALL, RepositoryAction(f"{manager} install"))
        pipeline.add(ActionCategory.ADD, RepositoryAction(add_command, flags=list(add_flags)))
        pipeline.add(REMOVE, RepositoryAction(_NODE_REMOVE[manager]))

        for script_name in node_scripts(package.absolute_path):
            for category in classify_script(script_name):
                pipeline.add(category, RepositoryAction(node_run_command(manager, script_name)))

        if package.language == "typescript":
            pipeline.add(ActionCategory.CHECK, RepositoryAction("tsc --noEmit"))

    # ------------------------------------------------------------------
    # Python

    def _python(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        directory = package.absolute_path
        has_pipfile = (directory / "Pipfile").exists()

        if (directory / "requirements.txt").exists():
            pipeline.add(ActionCategory.INSTALL, RepositoryAction("pip install -r requirements.txt"))
        if has_pipfile:
            pipeline.add(ActionCategory.INSTALL, RepositoryAction("pipenv install"))

        pipeline.add(ActionCategory.ADD, RepositoryAction("pipenv install" if has_pipfile else "pip install"))
        pipeline.add(REMOVE, RepositoryAction("pipenv uninstall" if has_pipfile else "pip uninstall -y"))
        pipeline.add(ActionCategory.TEST, RepositoryAction("python -m pytest"))

        if (directory / "setup.py").exists():
            pipeline.add(ActionCategory.BUILD, RepositoryAction("python setup.py build"))
        if (directory / "pyproject.toml").exists():
            pipeline.add(ActionCategory.BUILD, RepositoryAction("python -m build"))

        pipeline.add(ActionCategory.LINT, RepositoryAction("python -m flake8"))

        dev = _python_dev_command(package)
        if dev:
            pipeline.add(ActionCategory.DEV, RepositoryAction(dev))

    # ------------------------------------------------------------------
    # Go / Rust

    def _go(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        pipeline.add(ActionCategory.INSTALL, RepositoryAction("go mod download"))
        pipeline.add(ActionCategory.ADD, RepositoryAction("go get"))
        pipeline.add(ActionCategory.BUILD, RepositoryAction("go build ./..."))
        pipeline.add(ActionCategory.TEST, RepositoryAction("go test ./..."))
        pipeline.add(ActionCategory.DEV, RepositoryAction("go run ."))
        pipeline.add(ActionCategory.LINT, RepositoryAction("go vet ./..."))

    def _rust(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        pipeline.add(ActionCategory.INSTALL, RepositoryAction("cargo fetch"))
        pipeline.add(ActionCategory.ADD, RepositoryAction("cargo add"))
        pipeline.add(ActionCategory.BUILD, RepositoryAction("cargo build"))
        pipeline.add(ActionCategory.TEST, RepositoryAction("cargo test"))
        pipeline.add(ActionCategory.DEV, RepositoryAction("cargo run"))
        pipeline.add(ActionCategory.LINT, RepositoryAction("cargo clippy"))
        pipeline.add(REMOVE, RepositoryAction("cargo remove"))

    # ------------------------------------------------------------------
    # JVM

    def _maven(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        pipeline.add(ActionCategory.INSTALL, RepositoryAction("mvn install"))
        pipeline.add(ActionCategory.ADD, RepositoryAction("mvn dependency:get -Dartifact="))
        pipeline.add(ActionCategory.BUILD, RepositoryAction("mvn compile"))
        pipeline.add(ActionCategory.TEST, RepositoryAction("mvn test"))
        pipeline.add(ActionCategory.LINT, RepositoryAction("mvn verify"))

    def _gradle(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        pipeline.add(ActionCategory.ADD, RepositoryAction("./gradlew dependencies --write-locks"))
        pipeline.add(ActionCategory.BUILD, RepositoryAction("./gradlew build"))
        pipeline.add(ActionCategory.TEST, RepositoryAction("./gradlew test"))
        pipeline.add(ActionCategory.LINT, RepositoryAction("./gradlew check"))

    # ------------------------------------------------------------------
    # PHP / Ruby

    def _php(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        pipeline.add(ActionCategory.INSTALL, RepositoryAction("composer install"))
        pipeline.add(ActionCategory.ADD, RepositoryAction("composer require", flags=["--dev"]))
        pipeline.add(ActionCategory.TEST, RepositoryAction("composer test"))
        pipeline.add(REMOVE, RepositoryAction("composer remove"))
        if package.framework == "laravel":
            dev = "php artisan serve"
        elif package.framework == "symfony":
            dev = "symfony server:start"
        else:
            dev = "php -S localhost:8000"
        pipeline.add(ActionCategory.DEV, RepositoryAction(dev))

    def _ruby(self, package: PackageInfo, pipeline: ActionPipeline) -> None:
        pipeline.add(ActionCategory.INSTALL, RepositoryAction("bundle install"))
        pipeline.add(ActionCategory.ADD, RepositoryAction("bundle add"))
        pipeline.add(ActionCategory.TEST, RepositoryAction("bundle exec rspec"))
        pipeline.add(ActionCategory.LINT, RepositoryAction("bundle exec rubocop"))
        pipeline.add(REMOVE, RepositoryAction("bundle remove"))
        if package.framework == "rails":
            pipeline.add(ActionCategory.DEV, RepositoryAction("bundle exec rails server"))


def _python_dev_command(package: PackageInfo) -> Optional[str]:
    directory = package.absolute_path
    if package.framework == "django" and (directory / "manage.py").exists():
        return "python manage.py runserver"
    if package.framework == "flask":
        return "flask run"
    if package.framework == "fastapi":
        for module in ("main", "app"):
            if (directory / f"{module}.py").exists():
                return f"uvicorn {module}:app --reload"
    return None
