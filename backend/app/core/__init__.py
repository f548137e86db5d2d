"""Core Layer — pure reminder logic and boundary contracts, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Evaluators are pure and deterministic (clock is always passed in)

Design Decisions:
    - Functional core separated from imperative shell: the scheduler in services/
      does the IO around these functions
"""
