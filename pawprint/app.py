import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from pawprint.core.config import get_settings
from pawprint.core.errors import (
    AuthenticationRequired,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from pawprint.routers import comments as comments_router
from pawprint.routers import posts as posts_router
from pawprint.routers import users as users_router
from pawprint.services.guest_service import GuestReaper, GuestService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers on every JSON response."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the expired-guest sweep on its own thread for the app's lifetime."""
    settings = get_settings()
    reaper = GuestReaper(GuestService(), settings.guest_sweep_interval_seconds)
    reaper.start()
    app.state.guest_reaper = reaper
    try:
        yield
    finally:
        reaper.stop()


def _validation_failed(request: Request, exc: ValidationError):
    return JSONResponse({"errors": [err.to_dict() for err in exc.errors]}, status_code=400)


def _malformed_body(request: Request, exc: RequestValidationError):
    errors = [{"field": str(err["loc"][-1]), "message": err["msg"]} for err in exc.errors()]
    return JSONResponse({"errors": errors}, status_code=400)


def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse({"error": exc.message}, status_code=404)


def _unauthenticated(request: Request, exc: AuthenticationRequired):
    return JSONResponse({"error": exc.message}, status_code=401)


def _unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    message = exc.message if isinstance(exc, UnexpectedError) else str(exc)
    return JSONResponse({"error": message or "Internal server error"}, status_code=500)


def create_app() -> FastAPI:
    """Factory compatível com uvicorn/gunicorn."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(title="Pawprint API", lifespan=lifespan)

    allowed_cors = set()
    if settings.app_env != "prod":
        allowed_cors.update({"http://localhost:5173", "http://127.0.0.1:5173"})
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    app.add_exception_handler(ValidationError, _validation_failed)
    app.add_exception_handler(RequestValidationError, _malformed_body)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(AuthenticationRequired, _unauthenticated)
    app.add_exception_handler(UnexpectedError, _unexpected)
    app.add_exception_handler(Exception, _unexpected)

    @app.get("/health")
    def health():
        return {"message": "ok"}

    app.include_router(users_router.router)
    app.include_router(comments_router.router)
    app.include_router(posts_router.router)
    return app
