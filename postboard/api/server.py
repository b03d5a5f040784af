from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from postboard import __version__
from postboard.auth import get_current_session
from postboard.config import Config, load_config
from postboard.db import init_db
from postboard.errors import ApiError, AuthenticationError
from postboard.util.log import configure_logging

from .auth_routes import router as auth_router
from .comment_routes import router as comment_router
from .post_routes import router as post_router


logger = logging.getLogger("postboard.api")

# helmet-style defaults; HSTS is only sent in production (HTTPS).
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
}
_HSTS = "max-age=15552000; includeSubDomains"

_HTTP_ERROR_CODES = {
    404: "not_found",
    405: "method_not_allowed",
}


def _error(status_code: int, detail: str, **extra: Any) -> JSONResponse:
    content: Dict[str, Any] = {"error": detail}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def _depends_on(dependant: Any, call: Any) -> bool:
    return any(d.call is call or _depends_on(d, call) for d in dependant.dependencies)


def _requires_session(request: Request) -> bool:
    endpoint = request.scope.get("endpoint")
    if endpoint is None:
        return False
    for route in request.app.routes:
        if isinstance(route, APIRoute) and route.endpoint is endpoint:
            return _depends_on(route.dependant, get_current_session)
    return False


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            # The client gets the opaque code; the cause stays in the log.
            logger.error(
                "%s %s failed: %s",
                request.method,
                request.url.path,
                exc.detail,
                exc_info=exc.__cause__ or exc,
            )
        return _error(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # FastAPI decodes the body before it runs dependencies; keep 401 ahead of 400.
        if _requires_session(request):
            try:
                get_current_session(request, request.app.state.cfg)
            except AuthenticationError as auth_exc:
                return _error(auth_exc.status_code, auth_exc.detail)
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return _error(400, "invalid_request", fields=fields)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = _HTTP_ERROR_CODES.get(exc.status_code) or str(exc.detail)
        return _error(exc.status_code, detail)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s crashed", request.method, request.url.path)
        return _error(500, "internal_error")


def _install_middleware(app: FastAPI, cfg: Config) -> None:
    # Registration order matters: the last one added is outermost. request_logger
    # turns crashes into the opaque 500 so security_headers still sees a response.
    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s %s crashed", request.method, request.url.path)
            response = _error(500, "internal_error")
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for k, v in _SECURITY_HEADERS.items():
            response.headers.setdefault(k, v)
        if cfg.is_production:
            response.headers.setdefault("Strict-Transport-Security", _HSTS)
        return response

    # CORS is only needed when the frontend is served from another origin.
    if cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    """Build the application.

    With no argument the config is loaded from the environment, which raises
    ``ConfigError`` (and so aborts startup) when the signing secret is missing.
    """
    if cfg is None:
        cfg = load_config()

    configure_logging(cfg.LOG_LEVEL)
    logger.info("Starting postboard %s (env=%s)", __version__, cfg.APP_ENV)

    init_db(cfg.DB_DSN)

    app = FastAPI(title="postboard", version=__version__)
    # Handlers and dependencies read the config from here.
    app.state.cfg = cfg

    _install_error_handlers(app)
    _install_middleware(app, cfg)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(post_router)
    app.include_router(comment_router)
    return app
