# Services package init
"""
CareLink Services — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and stores (persistence).
How:   Services receive their stores through the constructor; route
       dependencies (routes/deps.py) build them per request from app.state.

Service Inventory:
    - AuditLogger:        best-effort audit entries in the logs collection
    - CaretakerService:   caretaker CRUD with ownership checks
    - PartnerCodeService: partner code generate/resolve
"""
