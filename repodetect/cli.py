"""CLI entrypoints for repodetect commands."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from .logging import configure_logging
from .orchestrator import Orchestrator

_ACTION_COMMANDS = {
    "build": "Build the target.",
    "dev": "Run the target's development command (arguments after -- are forwarded).",
    "run": "Alias of dev.",
    "check": "Run the target's type-check commands.",
    "typecheck": "Alias of check.",
    "lint": "Lint the target.",
    "test": "Run the target's tests.",
}

_COLORS = {"info": "34", "success": "32", "error": "31"}


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--path",
        default=None,
        help="Repository root (defaults to the enclosing git repository of the current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repodetect",
        description="Detect buildable targets in a repository and run their commands.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write a debug-level trace to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    targets_parser = subparsers.add_parser("targets", help="List detected targets.")
    _add_verbose_option(targets_parser, suppress_default=True)
    _add_path_option(targets_parser)
    targets_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full project context as JSON.",
    )

    for name, help_text in _ACTION_COMMANDS.items():
        action_parser = subparsers.add_parser(name, help=help_text)
        _add_verbose_option(action_parser, suppress_default=True)
        _add_path_option(action_parser)
        action_parser.add_argument(
            "target",
            nargs="?",
            default=None,
            help="Target specifier (address, //path, :name, name or relative path).",
        )

    for name, help_text in (
        ("add", "Add a package to the target."),
        ("remove", "Remove a package from the target."),
    ):
        package_parser = subparsers.add_parser(name, help=help_text)
        _add_verbose_option(package_parser, suppress_default=True)
        _add_path_option(package_parser)
        package_parser.add_argument("package", help="Package name.")
        package_parser.add_argument("target", nargs="?", default=None, help="Target specifier.")
        if name == "add":
            package_parser.add_argument(
                "--dev",
                action="store_true",
                help="Add the package as a development dependency.",
            )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def find_git_root(start: Path) -> Path:
    """Return the closest ancestor of ``start`` containing ``.git``, else ``start``."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / ".git").exists():
            return candidate
    return current


def normalize_target(target: Optional[str], repo_root: Path, cwd: Path) -> Optional[str]:
    """Turn a cwd-relative path specifier into a ``//`` repository path."""
    if not target:
        return None
    if target.startswith("//"):
        return target.rstrip("/")
    if ":" in target:
        return target
    if os.path.isabs(target):
        return target

    current = os.path.relpath(cwd.resolve(), repo_root.resolve())
    joined = os.path.normpath(os.path.join(current, target))
    if joined == ".":
        return "//"
    return f"//{Path(joined).as_posix()}".rstrip("/")


def _printer(stream_is_tty: bool) -> Callable[[str, str], None]:
    def _emit(message: str, level: str) -> None:
        if stream_is_tty and level in _COLORS:
            message = f"\033[{_COLORS[level]}m{message}\033[0m"
        print(message)

    return _emit


def _fail(parser: argparse.ArgumentParser, summary: str) -> None:
    if sys.stderr.isatty():
        summary = f"\033[31m{summary}\033[0m"
    parser.exit(1, f"{summary}\n")


def _split_forwarded(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1 :]
    return argv, []


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repodetect commands."""
    raw = list(sys.argv[1:] if argv is None else argv)
    parsed_args, forwarded = _split_forwarded(raw)

    parser = _build_parser()
    args = parser.parse_args(parsed_args)
    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file).expanduser() if args.log_file else None,
    )

    if args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
        return

    cwd = Path.cwd()
    repo_root = Path(args.path).expanduser().resolve() if args.path else find_git_root(cwd)
    orchestrator = Orchestrator()
    emit = _printer(sys.stdout.isatty())

    if args.command == "targets":
        try:
            context = orchestrator.detect(repo_root, strict=True)
        except Exception as exc:
            _fail(parser, f"repodetect targets failed: {exc}")
        if args.json:
            print(json.dumps(context.to_dict(), indent=2))
            return
        for address, target in context.targets.items():
            print(f"{address}\t{target.language}\t{target.target_type}")
        return

    target = normalize_target(getattr(args, "target", None), repo_root, cwd)

    if args.command in ("add", "remove"):
        try:
            if args.command == "add":
                orchestrator.add(
                    target,
                    repo_root,
                    package_name=args.package,
                    is_dev=bool(args.dev),
                    on_output=emit,
                    cwd=cwd,
                )
            else:
                orchestrator.remove(
                    target,
                    repo_root,
                    package_name=args.package,
                    on_output=emit,
                    cwd=cwd,
                )
        except Exception as exc:
            _fail(parser, f"Failed to {args.command} package {args.package}: {exc}")
        return

    if args.command in _ACTION_COMMANDS:
        try:
            orchestrator.execute(
                args.command,
                target,
                repo_root,
                on_output=emit,
                additional_args=forwarded,
                cwd=cwd,
            )
        except Exception as exc:
            _fail(parser, f"{args.command} failed: {exc}")
        return

    parser.exit(1, "Unknown command\n")  # pragma: no cover - argparse enforces choices


if __name__ == "__main__":  # pragma: no cover
    main()
