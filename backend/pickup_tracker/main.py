"""FastAPI application for the pickup tracker."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pickup_tracker.api.endpoints import router
from pickup_tracker.config import settings
from pickup_tracker.logging_config import setup_logging

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "origin-when-cross-origin",
}


def _error_response(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    body = {"success": False, "error": message}
    body.update(extra)
    # 500s are rendered outside the http middleware, so headers are set here too
    response_headers = dict(SECURITY_HEADERS)
    response_headers.update(headers or {})
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=response_headers,
    )


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware and error handlers."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description=settings.API_DESCRIPTION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(422, "Invalid request", detail=exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal server error")

    app.include_router(router)

    @app.get("/")
    async def root():
        """Service information."""
        return {
            "message": f"{settings.API_TITLE} API",
            "version": settings.API_VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pickup_tracker.main:app", host="0.0.0.0", port=8000, reload=False)
