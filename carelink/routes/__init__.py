# Routes package init
"""
CareLink Services — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - caretakers.py: POST   /api/caretaker/add
                     GET    /api/caretaker/get?patientId=
                     POST   /api/caretaker/update
                     DELETE /api/caretaker/delete
                     GET    /api/caretakers/all?organizationId=
    - partner.py:    POST   /partner/generate
                     GET    /partner/{code}
    - health.py:     GET    /health
    - deps.py:       FastAPI dependencies handing stores and services to handlers

Design Principle:
    Routes are THIN: parse the request, call the service, shape the response.
    Validation, ownership checks and audit logging live in the services.
"""
