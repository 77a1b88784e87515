# Middleware package init
"""
CareLink Services — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: Generate or accept a correlation ID for logging and tracing
    2. Logging: Log method, path, status and duration with that ID
    3. CORS: FastAPI's CORSMiddleware, one allowed origin with credentials

    The order is reversed for responses, so the request ID header is added
    after the route handler and logging sees the final status code.
"""
