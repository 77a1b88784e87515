"""
CareLink Services — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn carelink.main:app),
       and by the test suite with in-memory stores injected.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────────────┐  │
    │  │ Req ID   │→│  Logging        │→│  CORS        │  │
    │  └──────────┘ └─────────────────┘ └──────────────┘  │
    │                                                     │
    │  Routes (SERVICE=caretaker | partner | all):        │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ /api/caret.. │ │ /partner/... │ │ GET /health │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400  Auth→403  NotFound→404            │
    │  Dependency→500  anything else→500                 │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Build any store not injected into create_app()
       (Firestore needs FIREBASE_CREDENTIALS; missing → startup fails)

    Shutdown:
    1. Release stores this app created
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carelink import __version__
from carelink.config import settings
from carelink.exceptions import (
    AuthorizationError,
    CareLinkError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from carelink.middleware.logging import RequestLoggingMiddleware
from carelink.middleware.request_id import RequestIDMiddleware, request_id_var
from carelink.routes import caretakers, health, partner
from carelink.stores.base import DocumentStore, PartnerCodeStore
from carelink.stores.memory import MemoryDocumentStore, MemoryPartnerCodeStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any store is built.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("grpc").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Store Construction
# ══════════════════════════════════════════════════════════════════════════

def build_stores(app: FastAPI) -> List[DocumentStore]:
    """
    Fill in app.state.document_store / partner_code_store where create_app()
    was not given one.

    Returns:
        Stores created here, to be closed at shutdown.

    Raises:
        ValueError: A Firestore store is needed and FIREBASE_CREDENTIALS is
                    missing or cannot be decoded.
    """
    need_documents = settings.serves_caretakers and app.state.document_store is None
    need_codes = settings.serves_partner_codes and app.state.partner_code_store is None

    firestore_needed = (
        (need_documents and settings.document_store_backend == "firestore")
        or (need_codes and settings.partner_code_backend == "firestore")
    )

    owned: List[DocumentStore] = []
    firestore_store: Optional[DocumentStore] = None
    if firestore_needed:
        # Imported here so memory-only deployments never load firebase-admin
        from carelink.stores.firestore import FirestoreDocumentStore, init_firebase_app

        firebase_app = init_firebase_app(settings.firebase_service_account())
        firestore_store = FirestoreDocumentStore(firebase_app)
        owned.append(firestore_store)

    if need_documents:
        if settings.document_store_backend == "firestore":
            app.state.document_store = firestore_store
        else:
            logger.warning("Using in-memory document store; data is lost on restart")
            app.state.document_store = MemoryDocumentStore()

    if need_codes:
        if settings.partner_code_backend == "firestore":
            from carelink.stores.firestore import FirestorePartnerCodeStore

            app.state.partner_code_store = FirestorePartnerCodeStore(firestore_store)
        else:
            app.state.partner_code_store = MemoryPartnerCodeStore()

    return owned


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, then stores. A store that cannot be built aborts startup,
    so the process exits instead of answering every request with 500.
    Shutdown: close the stores built here (injected stores belong to the caller).
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("CareLink %s service starting up...", settings.service)

    try:
        owned = build_stores(app)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        logger.error("Fix the configuration and restart the server.")
        raise

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("CareLink service shutting down...")
    for store in owned:
        await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details,
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and one response format.

    Handler hierarchy:
        ValidationError     → 400 Bad Request
        AuthorizationError  → 403 Forbidden
        NotFoundError       → 404 Not Found
        DependencyError     → 500 (store message in details.reason when
                              EXPOSE_ERROR_DETAILS is on)
        CareLinkError       → 500 (catch-all for custom)
        Exception           → 500 (unexpected errors, generic message)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context or None),
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        logger.warning("[%s] Authorization error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=403,
            content=_error_body("forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(DependencyError)
    async def handle_dependency_error(request: Request, exc: DependencyError):
        rid = request_id_var.get("")
        logger.error("[%s] Dependency error: %s | Context: %s", rid, exc.message, exc.context)
        details = {"reason": exc.reason} if settings.expose_error_details and exc.reason else None
        return JSONResponse(
            status_code=500,
            content=_error_body("dependency_error", exc.message, details),
        )

    @app.exception_handler(CareLinkError)
    async def handle_carelink_error(request: Request, exc: CareLinkError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the server log only, never into the response."""
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    document_store: Optional[DocumentStore] = None,
    partner_code_store: Optional[PartnerCodeStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        document_store:     store for caretakers, users and logs; built from
                            settings at startup when omitted
        partner_code_store: store for partner codes; built from settings at
                            startup when omitted

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="CareLink Services API",
        description=(
            "Caretaker records with audit logging, and partner linking codes, "
            "for the caregiving platform."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.document_store = document_store
    app.state.partner_code_store = partner_code_store

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → CORS → route

    # CORS: one caller origin, cookies allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    if settings.serves_caretakers:
        app.include_router(caretakers.router)
    if settings.serves_partner_codes:
        app.include_router(partner.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `carelink.main:app` to be importable
app = create_app()
