"""Infrastructure Layer — capability implementations and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All external calls wrapped with retry/timeout/error mapping to core/errors.py

Design Decisions:
    - One module per capability: persistence, location, delivery, logging
"""
