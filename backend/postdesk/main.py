"""
PostDesk — FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, routers, the static
       mount, the page renderer and the named route table.
Who:   uvicorn (`uvicorn postdesk.main:app`), `python -m postdesk`, and tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌────────────┐ ┌────────┐ ┌─────────────┐  │
    │  │ Method   │→│ Rate Limit │→│ Req ID │→│  Logging    │  │
    │  │ Override │ │  (writes)  │ │        │ │             │  │
    │  └──────────┘ └────────────┘ └────────┘ └─────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌──────────────────────┐ ┌──────────┐ ┌─────────────┐   │
    │  │ /posts (7 actions)   │ │ /health  │ │ /static     │   │
    │  └──────────────────────┘ └──────────┘ └─────────────┘   │
    │                                                          │
    │  Exception Handlers (rendered as pages):                 │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Validation→422 form │ NotFound→404 │ DB/other→500  │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.routing import Mount

from postdesk import __version__
from postdesk.config import settings
from postdesk.database import create_all, dispose_engine
from postdesk.exceptions import DatabaseError, NotFoundError, ValidationFailedError
from postdesk.middleware.logging import RequestLoggingMiddleware
from postdesk.middleware.method_override import MethodOverrideMiddleware
from postdesk.middleware.rate_limit import RateLimitMiddleware
from postdesk.middleware.request_id import RequestIDMiddleware, request_id_var
from postdesk.routes import health, posts
from postdesk.schemas.post import ErrorResponse
from postdesk.views.page import NegotiatingRenderer, PageRenderer
from postdesk.views.routes import RouteTable

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] postdesk.access: GET /posts (posts.index) 200 3.1ms ...
    Called once from the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access log replaces uvicorn's; SQL echo only at DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging, optional table creation. Shutdown: dispose the engine."""
    setup_logging()
    logger.info("%s %s starting up...", settings.app_name, __version__)

    if settings.auto_create_tables:
        await create_all()
        logger.info("Database tables ensured (auto_create_tables=on)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("%s shutting down...", settings.app_name)
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def render_error(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    errors: Optional[Dict[str, List[str]]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Render an error as the errors/not-found or errors/error page."""
    renderer: PageRenderer = request.app.state.renderer
    component = "errors/not-found" if status_code == 404 else "errors/error"
    props = ErrorResponse(
        error=error,
        message=message,
        errors=errors,
        request_id=request_id_var.get("") or None,
    )
    response = renderer.page(request, component, props, status_code=status_code)
    if headers:
        response.headers.update(headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and rendered pages.

    Handler table:
        ValidationFailedError   → 422 originating form page (or JSON body)
        NotFoundError           → 404 errors/not-found
        HTTPException (router)  → its status; 404 → errors/not-found
        DatabaseError           → 500 errors/error (generic message)
        Exception (fallback)    → 500 errors/error (stack trace logged)

    Internal details (SQL, driver errors, tracebacks) are only logged.
    """

    @app.exception_handler(ValidationFailedError)
    async def handle_validation_failed(request: Request, exc: ValidationFailedError):
        """Re-render the submitted form with its field errors and old input."""
        rid = request_id_var.get("")
        logger.info("[%s] Validation failed: %s", rid, ", ".join(exc.errors))

        route_name = getattr(request.scope.get("route"), "name", None)
        component = posts.FORM_PAGES.get(route_name)
        if component is None:
            return JSONResponse(
                status_code=422,
                content=ErrorResponse(
                    error="validation_failed",
                    message=exc.message,
                    errors=exc.errors,
                    request_id=rid or None,
                ).model_dump(),
            )

        props = {"errors": exc.errors, "old": exc.old_input}
        post = getattr(request.state, "post", None)
        if post is not None:
            props["post"] = post.model_dump(mode="json")
        return request.app.state.renderer.page(request, component, props, status_code=422)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return render_error(request, 404, "not_found", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Router-level errors: unknown paths (404) and wrong methods (405)."""
        if exc.status_code == 404:
            return render_error(request, 404, "not_found", "The requested page was not found")
        return render_error(
            request,
            exc.status_code,
            "http_error",
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return render_error(
            request,
            500,
            "server_error",
            "An internal error occurred. Please try again later.",
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return render_error(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(renderer: Optional[PageRenderer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        renderer: page renderer to use; defaults to the Jinja2/JSON
                  NegotiatingRenderer over settings.templates_dir.
    """
    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Create, edit, list and delete blog posts.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware (last added executes first) ────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-PostDesk", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(MethodOverrideMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(posts.router)
    app.include_router(health.router)
    app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

    app.state.renderer = renderer or NegotiatingRenderer(settings.templates_dir)
    # Newer FastAPI releases wrap included routers in app.routes; name them from
    # the routers themselves and take the static mount from the app
    mounts = [route for route in app.routes if isinstance(route, Mount)]
    app.state.route_table = RouteTable.from_routes(
        [*posts.router.routes, *health.router.routes, *mounts]
    )

    return app


app = create_app()
