"""Response headers for API routes."""

from __future__ import annotations

from fastapi import FastAPI, Request

from app.core.config import Settings

API_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    # Import reports carry customer emails.
    "Cache-Control": "no-store",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


def install_security_headers_middleware(app: FastAPI, settings: Settings) -> None:
    extra = {"Strict-Transport-Security": HSTS_VALUE} if settings.is_production else {}

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):  # type: ignore[override]
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            response.headers.update({**API_HEADERS, **extra})
        return response
