"""
FastAPI application entrypoint for the battle analysis proxy.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from battle_analyzer.api.routes import router as api_router
from battle_analyzer.core.config import get_settings
from battle_analyzer.core.errors import AnalyzerError
from battle_analyzer.core.logging import configure_logging

logger = logging.getLogger(__name__)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    fields = []
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            return "Invalid request: body is not valid JSON"
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.append(".".join(location) or "body")
    if any(field.split(".", 1)[0] == "messages" for field in fields):
        return "Invalid request: messages required"
    return "Invalid request: " + ", ".join(dict.fromkeys(fields))


async def _analyzer_error_handler(request: Request, exc: AnalyzerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_payload())


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": _describe_validation_errors(exc)})


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Last War Battle Analyzer",
        version="0.1.0",
        description="Quota-governed screenshot analysis proxy with battle stats and insights.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(AnalyzerError, _analyzer_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]


if __name__ == "__main__":  # pragma: no cover - local server entry point
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
