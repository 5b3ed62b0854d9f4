"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient

from repodetect.orchestrator import Orchestrator
from repodetect.runner import CommandError, CommandResult, CommandRunner
from repodetect.service import create_app


class _StubRunner(CommandRunner):
    def __init__(self) -> None:
        super().__init__(echo=False)
        self.commands: List[str] = []

    def run(self, command: str, cwd) -> CommandResult:
        self.commands.append(command)
        if command.startswith("cargo"):
            raise CommandError(command, 101, "", "error: could not compile")
        return CommandResult(command=command, exit_code=0, stdout="", stderr="")


@pytest.fixture
def runner() -> _StubRunner:
    return _StubRunner()


@pytest.fixture
def client(runner: _StubRunner) -> TestClient:
    return TestClient(create_app(lambda: Orchestrator(runner=runner)))


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    (tmp_path / "api").mkdir()
    (tmp_path / "api" / "go.mod").write_text("module example.com/api\n", encoding="utf-8")
    (tmp_path / "api" / ".env").write_text("PORT=8080\n", encoding="utf-8")
    (tmp_path / "engine").mkdir()
    (tmp_path / "engine" / "Cargo.toml").write_text('[package]\nname = "engine"\n', encoding="utf-8")
    return tmp_path


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_detect_endpoint(client: TestClient, repo: Path) -> None:
    response = client.post("/detect", json={"path": str(repo)})

    assert response.status_code == 200
    payload = response.json()
    assert list(payload["targets"]) == ["api:api", "engine:engine"]
    assert "target_dependencies" not in payload


def test_detect_missing_path_is_404(client: TestClient, tmp_path: Path) -> None:
    response = client.post("/detect", json={"path": str(tmp_path / "missing")})

    assert response.status_code == 404


def test_target_data_endpoint(client: TestClient, repo: Path) -> None:
    response = client.post("/targets/data", json={"path": str(repo), "targets": ["api:api"]})

    assert response.status_code == 200
    assert response.json() == {"api:api": {"dependencies": {}, "env_names": ["PORT"]}}


def test_target_data_unknown_address(client: TestClient, repo: Path) -> None:
    response = client.post("/targets/data", json={"path": str(repo), "targets": ["nope:nope"]})

    assert response.status_code == 404
    assert response.json()["candidates"] == ["api:api", "engine:engine"]


def test_execute_endpoint_streams_output(client: TestClient, runner: _StubRunner, repo: Path) -> None:
    response = client.post("/execute", json={"path": str(repo), "action": "build", "target": "//api"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["target"] == "api:api"
    assert runner.commands == ["go mod download", "go build ./..."]
    assert payload["output"][-1] == {"message": "build completed successfully!", "level": "success"}


def test_execute_command_failure_is_422(client: TestClient, repo: Path) -> None:
    response = client.post("/execute", json={"path": str(repo), "action": "test", "target": "engine"})

    assert response.status_code == 422
    body = response.json()
    assert body["command"] == "cargo fetch"
    assert body["exit_code"] == 101


def test_add_endpoint(client: TestClient, runner: _StubRunner, repo: Path) -> None:
    response = client.post(
        "/add",
        json={"path": str(repo), "package_name": "github.com/google/uuid", "target": "//api"},
    )

    assert response.status_code == 200
    assert runner.commands == ["go get github.com/google/uuid"]
