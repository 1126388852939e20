"""Services Layer — IO orchestration around the pure accounting core.

Invariants:
    - Every repository instance is bound to one AsyncSession (one machine, one slice)
    - Services commit their own writes; callers never see half-applied increments
"""
