"""
CareLink Services — Application Package Initializer
====================================================

What: Marks the `carelink` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    One package, two deployable services (caretaker records and partner codes):

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Validation, ownership, audit log
    ├─────────────────────────────────────┤
    │              Schemas                │  ← Pydantic request/response models
    ├─────────────────────────────────────┤
    │          Stores (Persistence)       │  ← Firestore or in-memory backends
    └─────────────────────────────────────┘

    Stores are created once per application and handed to services through
    FastAPI dependencies, so tests can swap in the in-memory backends.
"""

__version__ = "1.0.0"
