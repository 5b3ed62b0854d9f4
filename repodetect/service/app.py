"""FastAPI application entrypoint for repodetect service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, TypeVar

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..orchestrator import MissingActionError, Orchestrator
from ..resolver import TargetNotFound
from ..runner import CommandError

T = TypeVar("T")


class DetectRequest(BaseModel):
    path: str
    include_target_data: bool = False


class TargetDataRequest(BaseModel):
    path: str
    targets: Optional[List[str]] = None


class ExecuteRequest(BaseModel):
    path: str
    action: str
    target: Optional[str] = None
    additional_args: List[str] = Field(default_factory=list)
    cwd: Optional[str] = None


class AddRequest(BaseModel):
    path: str
    package_name: str
    target: Optional[str] = None
    is_dev: bool = False
    use_workspace: Optional[bool] = None
    additional_flags: List[str] = Field(default_factory=list)
    cwd: Optional[str] = None


class OutputLine(BaseModel):
    message: str
    level: str


class ExecuteResponse(BaseModel):
    status: str
    target: str
    output: List[OutputLine]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


async def _in_executor(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing repodetect operations."""

    app = FastAPI(title="repodetect Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/detect")
    async def detect(
        payload: DetectRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        context = await _in_executor(
            lambda: orchestrator.detect(
                payload.path,
                strict=True,
                include_target_data=payload.include_target_data,
            )
        )
        return context.to_dict()

    @app.post("/targets/data")
    async def target_data(
        payload: TargetDataRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> Dict[str, Any]:
        def _collect() -> Dict[str, Any]:
            context = orchestrator.detect(payload.path, strict=True)
            targets = context.targets
            if payload.targets is not None:
                missing = [address for address in payload.targets if address not in targets]
                if missing:
                    raise TargetNotFound(missing[0], "", targets)
                targets = {address: targets[address] for address in payload.targets}
            data = orchestrator.bulk_data(targets, payload.path)
            return {address: item.to_dict() for address, item in data.items()}

        return await _in_executor(_collect)

    @app.post("/execute", response_model=ExecuteResponse)
    async def execute(
        payload: ExecuteRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ExecuteResponse:
        output: List[OutputLine] = []

        def _run() -> str:
            target = orchestrator.execute(
                payload.action,
                payload.target,
                payload.path,
                on_output=lambda message, level: output.append(OutputLine(message=message, level=level)),
                additional_args=payload.additional_args,
                cwd=payload.cwd or payload.path,
            )
            return target.address

        address = await _in_executor(_run)
        return ExecuteResponse(status="ok", target=address, output=output)

    @app.post("/add", response_model=ExecuteResponse)
    async def add(
        payload: AddRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ExecuteResponse:
        output: List[OutputLine] = []

        def _run() -> str:
            target = orchestrator.add(
                payload.target,
                payload.path,
                package_name=payload.package_name,
                is_dev=payload.is_dev,
                use_workspace=payload.use_workspace,
                additional_flags=payload.additional_flags,
                on_output=lambda message, level: output.append(OutputLine(message=message, level=level)),
                cwd=payload.cwd or payload.path,
            )
            return target.address

        address = await _in_executor(_run)
        return ExecuteResponse(status="ok", target=address, output=output)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(TargetNotFound)
    async def target_not_found_handler(_: Any, exc: TargetNotFound) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": str(exc), "candidates": exc.candidates},
        )

    @app.exception_handler(CommandError)
    async def command_error_handler(_: Any, exc: CommandError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "detail": str(exc),
                "command": exc.command,
                "exit_code": exc.exit_code,
                "stdout": exc.stdout,
                "stderr": exc.stderr,
            },
        )

    @app.exception_handler(MissingActionError)
    async def missing_action_handler(_: Any, exc: MissingActionError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
