"""FastAPI application entrypoint for ctxgen service mode."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..analysis.analyzer import ProjectAnalyzer, build_default_analyzer
from ..config import load_config
from ..errors import AnalysisError, ConfigError


class AnalyzeRequest(BaseModel):
    paths: List[str] = Field(default_factory=list)
    snapshot: Optional[bool] = None


class HealthResponse(BaseModel):
    status: str


def _default_analyzer_factory(root: Path, snapshot: Optional[bool]) -> ProjectAnalyzer:
    return build_default_analyzer(load_config(root), snapshot=snapshot)


def create_app(
    analyzer_factory: Callable[[Path, Optional[bool]], ProjectAnalyzer] = _default_analyzer_factory,
) -> FastAPI:
    """Create the FastAPI application exposing project analysis."""

    app = FastAPI(title="ctxgen service", version="1.0.0")

    def get_factory() -> Callable[[Path, Optional[bool]], ProjectAnalyzer]:
        return analyzer_factory

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze")
    async def analyze(
        payload: AnalyzeRequest,
        factory: Callable[[Path, Optional[bool]], ProjectAnalyzer] = Depends(get_factory),
    ) -> Dict[str, Any]:
        if payload.paths:
            root = Path(payload.paths[0]).expanduser()
            if not root.exists():
                raise FileNotFoundError(f"Project path not found: {payload.paths[0]}")
        else:
            root = Path.cwd()
        analyzer = factory(root, payload.snapshot)
        context = await analyzer.analyze_project(payload.paths)
        return context.to_dict()

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(_: Any, exc: AnalysisError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc), "error": type(exc).__name__})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc), "error": "ConfigError"})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["AnalyzeRequest", "create_app", "run_service"]
