"""Shared helper utilities for manifest analyzers and dependency readers."""

from __future__ import annotations

import json
import re
import tomllib
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .base import ManifestError

# Node.js helpers

NODE_LOCKFILES: Tuple[Tuple[str, str], ...] = (
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
)

_NODE_FRAMEWORKS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("vue",), "vue"),
    (("angular", "@angular/core"), "angular"),
    (("svelte",), "svelte"),
    (("express",), "express"),
    (("fastify",), "fastify"),
    (("koa",), "koa"),
    (("next",), "next"),
    (("nuxt",), "nuxt"),
    (("gatsby",), "gatsby"),
    (("react",), "react"),
)


def load_json(path: Path) -> Dict[str, Any]:
    """Parse a JSON manifest, raising ManifestError with the parse detail."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(path, str(exc)) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(path, f"JSON syntax error: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(path, "expected a JSON object at the top level")
    return data


def string_map(value: Any) -> Dict[str, str]:
    """Coerce a manifest dependency table into a plain name -> spec mapping."""
    if not isinstance(value, dict):
        return {}
    return {str(key): str(spec) for key, spec in value.items()}


def merged_node_dependencies(package_json: Dict[str, Any]) -> Dict[str, str]:
    merged = string_map(package_json.get("dependencies"))
    merged.update(string_map(package_json.get("devDependencies")))
    return merged


def detect_node_framework(package_json: Dict[str, Any]) -> Optional[str]:
    dependencies = merged_node_dependencies(package_json)
    for names, framework in _NODE_FRAMEWORKS:
        if any(dependencies.get(name) for name in names):
            return framework
    return None


def detect_node_package_manager(package_dir: Path, repo_root: Path) -> str:
    """Infer the Node package manager from the nearest lockfile.

    The repository root is searched first so monorepo workspaces share the
    root manager, then the package directory, then each ancestor below root.
    """
    search_paths = []
    if repo_root != package_dir:
        search_paths.append(repo_root)
    search_paths.append(package_dir)

    # Ancestors strictly between the package and the repository root only.
    current = package_dir.parent
    while current != repo_root and repo_root in current.parents:
        search_paths.append(current)
        current = current.parent

    for directory in search_paths:
        for filename, manager in NODE_LOCKFILES:
            if (directory / filename).exists():
                return manager
    return "npm"


# Python helpers

_REQUIREMENT_LINE = re.compile(r"^([a-zA-Z0-9\-_]+)([>=<~!]+.*)?$")
_PEP508_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._\-]*)\s*(?:\[[^\]]*\])?\s*(.*)$")
_PYTHON_FRAMEWORKS = ("django", "flask", "fastapi", "tornado")


def parse_requirements(text: str) -> Dict[str, str]:
    dependencies: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        match = _REQUIREMENT_LINE.match(stripped)
        if match:
            dependencies[match.group(1)] = match.group(2) or "*"
    return dependencies


def read_requirements(directory: Path) -> Dict[str, str]:
    path = directory / "requirements.txt"
    try:
        return parse_requirements(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return {}


def detect_python_framework(directory: Path) -> Optional[str]:
    dependencies = read_requirements(directory)
    for framework in _PYTHON_FRAMEWORKS:
        if framework in dependencies:
            return framework
    return None


def _split_pep508(requirement: str) -> Optional[Tuple[str, str]]:
    match = _PEP508_NAME.match(requirement.split(";", 1)[0])
    if not match:
        return None
    name, spec = match.group(1), match.group(2).strip()
    return name, spec or "*"


def parse_pyproject_dependencies(text: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return runtime and optional/dev dependencies declared in pyproject.toml."""
    data = tomllib.loads(text)
    runtime: Dict[str, str] = {}
    dev: Dict[str, str] = {}

    project = data.get("project")
    if isinstance(project, dict):
        for requirement in project.get("dependencies", []) or []:
            parsed = _split_pep508(requirement) if isinstance(requirement, str) else None
            if parsed:
                runtime[parsed[0]] = parsed[1]
        optional = project.get("optional-dependencies", {}) or {}
        for values in optional.values():
            for requirement in values or []:
                parsed = _split_pep508(requirement) if isinstance(requirement, str) else None
                if parsed:
                    dev[parsed[0]] = parsed[1]

    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        for name, spec in (poetry.get("dependencies", {}) or {}).items():
            if name.lower() != "python":
                runtime[name] = _toml_spec(spec)
        for name, spec in (poetry.get("dev-dependencies", {}) or {}).items():
            dev[name] = _toml_spec(spec)
    return runtime, dev


# Go / Rust helpers

_GO_REQUIRE = re.compile(r"([^\s]+)\s+([^\s]+)")


def parse_go_mod(text: str) -> Dict[str, str]:
    dependencies: Dict[str, str] = {}
    in_block = False
    for line in text.splitlines():
        stripped = line.strip()
        if stripped == "require (":
            in_block = True
            continue
        if stripped == ")":
            in_block = False
            continue
        if in_block or stripped.startswith("require "):
            if stripped.startswith("require "):
                stripped = stripped[len("require "):]
            match = _GO_REQUIRE.match(stripped)
            if match:
                dependencies[match.group(1)] = match.group(2)
    return dependencies


def _toml_spec(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        version = value.get("version")
        if isinstance(version, str):
            return version
    return "*"


def parse_cargo_dependencies(text: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    data = tomllib.loads(text)
    runtime = {name: _toml_spec(spec) for name, spec in (data.get("dependencies") or {}).items()}
    dev = {name: _toml_spec(spec) for name, spec in (data.get("dev-dependencies") or {}).items()}
    return runtime, dev


# PHP / Ruby helpers

_PHP_FRAMEWORKS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("laravel/framework",), "laravel"),
    (("symfony/symfony", "symfony/framework-bundle"), "symfony"),
    (("cakephp/cakephp",), "cakephp"),
    (("codeigniter/framework",), "codeigniter"),
)

_GEM_LINE = re.compile(r"""^\s*gem\s+['"]([^'"]+)['"](?:\s*,\s*['"]([^'"]+)['"])?""")


def detect_php_framework(composer: Dict[str, Any]) -> Optional[str]:
    dependencies = string_map(composer.get("require"))
    dependencies.update(string_map(composer.get("require-dev")))
    for names, framework in _PHP_FRAMEWORKS:
        if any(name in dependencies for name in names):
            return framework
    return None


def detect_ruby_framework(directory: Path) -> Optional[str]:
    try:
        content = (directory / "Gemfile").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    for framework in ("rails", "sinatra", "hanami"):
        if framework in content:
            return framework
    return None


def parse_gemfile(text: str) -> Dict[str, str]:
    dependencies: Dict[str, str] = {}
    for line in text.splitlines():
        match = _GEM_LINE.match(line)
        if match:
            dependencies[match.group(1)] = match.group(2) or "*"
    return dependencies


# Java helpers

_GRADLE_DEPENDENCY = re.compile(r"['\"]([\w\-.]+:[\w\-.]+)(?::([\w\-.]+))?['\"]")
_GRADLE_CONFIGURATIONS = ("implementation", "api", "compile", "runtimeOnly")
_GRADLE_TEST_CONFIGURATIONS = ("testImplementation", "testCompile", "testRuntimeOnly")


def parse_pom_dependencies(text: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    root = ET.fromstring(text)
    namespace = _detect_xml_namespace(root)
    prefix = f"{{{namespace}}}" if namespace else ""

    runtime: Dict[str, str] = {}
    dev: Dict[str, str] = {}
    for dep in root.iter(f"{prefix}dependency"):
        group = (dep.findtext(f"{prefix}groupId") or "").strip()
        artifact = (dep.findtext(f"{prefix}artifactId") or "").strip()
        if not group or not artifact:
            continue
        version = (dep.findtext(f"{prefix}version") or "").strip() or "*"
        scope = (dep.findtext(f"{prefix}scope") or "").strip()
        bucket = dev if scope == "test" else runtime
        bucket[f"{group}:{artifact}"] = version
    return runtime, dev


def _detect_xml_namespace(element: ET.Element) -> str | None:
    match = re.match(r"\{(.+)}", element.tag)
    return match.group(1) if match else None


def parse_gradle_dependencies(content: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    runtime: Dict[str, str] = {}
    dev: Dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("//"):
            continue
        match = _GRADLE_DEPENDENCY.search(line)
        if not match:
            continue
        version = match.group(2) or "*"
        if line.startswith(_GRADLE_TEST_CONFIGURATIONS):
            dev[match.group(1)] = version
        elif any(token in line for token in _GRADLE_CONFIGURATIONS):
            runtime[match.group(1)] = version
    return runtime, dev


def node_scripts(package_dir: Path) -> Dict[str, str]:
    """Return the string-valued ``scripts`` entries of a package.json, in file order."""
    scripts = load_json(package_dir / "package.json").get("scripts")
    if not isinstance(scripts, dict):
        return {}
    return {name: body for name, body in scripts.items() if isinstance(body, str)}
