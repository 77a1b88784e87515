# Stores package init
"""
CareLink Services — Stores Layer
==================================

What:  Persistence backends behind two small abstract interfaces.

Store Inventory:
    - base.py:      DocumentStore, PartnerCodeStore, FieldFilter, SERVER_TIMESTAMP
    - memory.py:    MemoryDocumentStore, MemoryPartnerCodeStore
    - firestore.py: FirestoreDocumentStore, FirestorePartnerCodeStore

firestore.py is imported lazily by main.py so that memory-only deployments
and the test suite never need Firebase credentials.
"""
