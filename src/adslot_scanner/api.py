"""FastAPI application exposing the scan pipeline over HTTP.

Start the service::

    uvicorn adslot_scanner.api:app --host 0.0.0.0 --port 8000

Scan a page::

    curl -X POST http://localhost:8000/api/scan \\
      -H "Content-Type: application/json" \\
      -d '{"url": "https://www.clarin.com"}'
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import ScannerConfig
from .errors import LaunchError, NavigationSetupError, ScannerError, ValidationError
from .logging import configure_logging, jlog, set_global_context
from .scanner import Scanner
from .versioning import get_scanner_version


class ScanRequest(BaseModel):
    url: Optional[str] = Field(default=None, description="Page to scan, e.g. https://www.clarin.com")
    inference_timeout_s: Optional[float] = Field(default=None, gt=0, description="Per-slot inference deadline")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(scanner: Scanner | None = None) -> FastAPI:
    """Build the app. Without ``scanner`` one is created from the environment at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "scanner", None) is None:
            configure_logging()
            set_global_context(app="adslot_scanner", scanner_version=get_scanner_version())
            # Missing GEMINI_API_KEY fails startup, not individual requests.
            app.state.scanner = Scanner(ScannerConfig.from_env())
        yield

    app = FastAPI(title="Ad Slot Scanner", version=get_scanner_version(), lifespan=lifespan)
    app.state.scanner = scanner

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body: expected JSON {\"url\": string}")

    @app.exception_handler(ValidationError)
    async def _invalid_input(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(LaunchError)
    async def _launch_failed(request: Request, exc: LaunchError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Browser Launch Failed: {exc}")

    @app.exception_handler(NavigationSetupError)
    async def _setup_failed(request: Request, exc: NavigationSetupError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Page Setup Failed: {exc}")

    @app.exception_handler(ScannerError)
    async def _scanner_failed(request: Request, exc: ScannerError) -> JSONResponse:
        jlog("error", event="scan_failed", path=request.url.path, error=repr(exc))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal Server Error")

    @app.post("/api/scan")
    async def scan(body: ScanRequest, request: Request) -> JSONResponse:
        active: Scanner = request.app.state.scanner
        try:
            result = await active.scan(body.url, inference_timeout_s=body.inference_timeout_s)
        except ScannerError:
            raise
        except Exception as exc:
            jlog("error", event="scan_unhandled_error", url=body.url, error=repr(exc))
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal Server Error")
        return JSONResponse(content=result.to_payload())

    @app.get("/health")
    async def health(request: Request) -> dict:
        active: Scanner | None = getattr(request.app.state, "scanner", None)
        config = active.config if active is not None else None
        return {
            "status": "ok" if config is not None else "starting",
            "version": get_scanner_version(),
            "environment": config.environment if config else None,
            "credential": "Present" if config and config.gemini_api_key else "Missing",
        }

    return app


app = create_app()

__all__ = ["ScanRequest", "app", "create_app"]
