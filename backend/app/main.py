"""ASGI entrypoint for the Zendesk import service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import HelpdeskException
from app.core.logging import setup_logging
from app.core.security_headers import install_security_headers_middleware
from app.routers import imports

logger = logging.getLogger(__name__)


async def helpdesk_exception_handler(request: Request, exc: HelpdeskException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers or None)


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    settings.validate_runtime_security()

    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )
    install_security_headers_middleware(app, settings)
    app.add_exception_handler(HelpdeskException, helpdesk_exception_handler)

    app.include_router(imports.router, prefix="/api/import", tags=["import"])
    logger.info("Import API ready (env=%s)", settings.ENV)
    return app


app = create_app()
