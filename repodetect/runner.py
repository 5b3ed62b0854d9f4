"""Sequential execution of a target's install, check and action commands."""

from __future__ import annotations

import subprocess
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, List, Optional, Sequence, Union

from .logging import get_logger
from .models import ActionCategory, ActionKey, RepositoryAction, TargetInfo, action_key

OutputCallback = Callable[[str, str], None]


def _silent(message: str, level: str) -> None:
    return None


class CommandError(RuntimeError):
    """Raised when a command exits non-zero or cannot be spawned."""

    def __init__(
        self,
        command: str,
        exit_code: Optional[int],
        stdout: str = "",
        stderr: str = "",
        reason: Optional[str] = None,
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        if reason is not None:
            message = f'Failed to execute command "{command}": {reason}'
        else:
            message = f'Command "{command}" exited with code {exit_code}'
        if stdout.strip():
            message += f". stdout: {stdout.strip()}"
        if stderr.strip():
            message += f". stderr: {stderr.strip()}"
        super().__init__(message)


@dataclass
class CommandResult:
    command: str
    exit_code: int
    stdout: str
    stderr: str


def working_directory(target: TargetInfo, repo_path: Union[str, Path]) -> Path:
    """Return the directory a target's commands run in."""
    repo = Path(repo_path)
    return repo if not target.path else repo / target.path


class CommandRunner:
    """Runs commands without a shell, echoing and capturing their output."""

    def __init__(self, echo: bool = True) -> None:
        self.echo = echo
        self.logger = get_logger("runner")

    def execute(
        self,
        target: TargetInfo,
        action: Union[str, ActionKey],
        repo_path: Union[str, Path],
        *,
        on_output: Optional[OutputCallback] = None,
        additional_args: Optional[Sequence[str]] = None,
    ) -> List[CommandResult]:
        """Run install, then check, then the requested action's commands."""
        emit = on_output or _silent
        key = action_key(action)
        cwd = working_directory(target, repo_path)
        results: List[CommandResult] = []

        emit("Running install actions...", "info")
        results.extend(self._run_actions(target.actions.get(ActionCategory.INSTALL), cwd, emit))

        emit("Running check actions...", "info")
        results.extend(self._run_actions(target.actions.get(ActionCategory.CHECK), cwd, emit))

        if key is not ActionCategory.CHECK:
            emit(f"Running {key.value} actions...", "info")
            extra = additional_args if key is ActionCategory.DEV else None
            results.extend(self._run_actions(target.actions.get(key), cwd, emit, extra))
        return results

    def _run_actions(
        self,
        actions: Sequence[RepositoryAction],
        cwd: Path,
        emit: OutputCallback,
        additional_args: Optional[Sequence[str]] = None,
    ) -> List[CommandResult]:
        if not actions:
            emit("No actions defined", "info")
            return []

        results: List[CommandResult] = []
        for action in actions:
            command = action.command
            if additional_args:
                command = f"{command} {' '.join(additional_args)}"
            emit(f"  Running: {command}", "info")
            results.append(self.run(command, cwd))
        return results

    def run(self, command: str, cwd: Union[str, Path]) -> CommandResult:
        """Spawn ``command`` in ``cwd``; raise CommandError unless it exits 0."""
        argv = command.split()
        if not argv:
            raise CommandError(command, None, reason="empty command")

        self.logger.debug("Executing %s in %s", argv, cwd)
        try:
            process = subprocess.Popen(
                argv,
                cwd=str(cwd),
                stdin=None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandError(command, None, reason=str(exc)) from exc

        stdout_chunks: List[str] = []
        stderr_chunks: List[str] = []
        readers = [
            threading.Thread(
                target=self._pump,
                args=(process.stdout, stdout_chunks, sys.stdout),
                daemon=True,
            ),
            threading.Thread(
                target=self._pump,
                args=(process.stderr, stderr_chunks, sys.stderr),
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()
        exit_code = process.wait()
        for reader in readers:
            reader.join()

        stdout = "".join(stdout_chunks)
        stderr = "".join(stderr_chunks)
        if exit_code != 0:
            raise CommandError(command, exit_code, stdout, stderr)
        return CommandResult(command=command, exit_code=exit_code, stdout=stdout, stderr=stderr)

    def _pump(self, stream: Optional[IO[bytes]], sink: List[str], mirror: IO[str]) -> None:
        if stream is None:
            return
        with stream:
            for raw in iter(stream.readline, b""):
                text = raw.decode("utf-8", errors="replace")
                sink.append(text)
                if self.echo:
                    mirror.write(text)
                    mirror.flush()
