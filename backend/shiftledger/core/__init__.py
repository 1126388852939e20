"""Core Layer — pure accounting rules with no IO.

Invariants:
    - Nothing in core/ imports from services/, infrastructure/, models/ or api/
    - Every function here is deterministic given its arguments (clock is injected)

Design Decisions:
    - Shell (services/) orchestrates IO around these pure functions, the same
      split the ledger tests rely on to run without a database
"""
