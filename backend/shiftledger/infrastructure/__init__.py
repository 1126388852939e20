"""Infrastructure Layer — database access, clock and cross-cutting concerns.

Invariants:
    - Infrastructure never imports accounting rules from core/ (errors and types only)
    - SQLAlchemy failures surface as core.errors.DatabaseError
"""
