"""Slice Accounting — pure arithmetic for one accumulation slice.

Invariants:
    - elapsed time is measured from the PERSISTED updated_at, never a cached value
    - A slice of ≤ 0 whole minutes yields no plan (no write, no event)
    - A plan never carries both a production and a downtime delta
    - Efficiency = running / window × 100, running = window − downtime clamped to [0, window]
    - The 1-minute bootstrap applies only to a row created in the same call with
      zero production and (effectively) zero elapsed time

Design Decisions:
    - plan_* functions return a SlicePlan descriptor and do NOT write anything:
      the shell (ProductionAccumulator) applies it through ShiftLedger
    - Whole minutes (floor) for both paths. A skipped sub-minute slice leaves
      updated_at untouched so its seconds count toward the next slice; the
      fractional remainder of an applied slice is dropped
"""

import math
from dataclasses import dataclass
from datetime import datetime

from shiftledger.core.domain_types import is_non_productive, is_running
from shiftledger.core.snapshots import LedgerSnapshot
from shiftledger.core.speed_policy import rate_for_slice, units_for_slice


SECONDS_PER_MINUTE: int = 60
BOOTSTRAP_THRESHOLD_SECONDS: float = 6.0
BOOTSTRAP_MINUTES: int = 1


@dataclass(frozen=True)
class SlicePlan:
    """What one slice adds to a ledger row."""
    elapsed_minutes: int
    rate_applied: float
    produced_delta: int
    downtime_delta: int
    new_last_known_rate: float
    bootstrapped: bool = False


def elapsed_seconds(now: datetime, anchor: datetime) -> float:
    return (now - anchor).total_seconds()


def elapsed_minutes(now: datetime, anchor: datetime) -> int:
    """Whole minutes between anchor and now; negative under clock skew."""
    return math.floor(elapsed_seconds(now, anchor) / SECONDS_PER_MINUTE)


def operation_duration_minutes(now: datetime, start_time: datetime) -> int:
    return max(0, elapsed_minutes(now, start_time))


def compute_efficiency(window_minutes: int, downtime_minutes: int) -> float:
    """Share of the shift window the machine was not down, in percent."""
    if window_minutes <= 0:
        return 0.0
    running = min(window_minutes, max(0, window_minutes - downtime_minutes))
    return round(running / window_minutes * 100, 2)


def plan_production_slice(
    entry: LedgerSnapshot, current_rate: float, now: datetime,
) -> SlicePlan | None:
    """Primary path: charge the elapsed slice at the policy rate."""
    minutes = elapsed_minutes(now, entry.updated_at)
    if minutes <= 0:
        return None
    rate = rate_for_slice(entry.last_known_rate, current_rate)
    return SlicePlan(
        elapsed_minutes=minutes,
        rate_applied=rate,
        produced_delta=units_for_slice(minutes, rate),
        downtime_delta=0,
        new_last_known_rate=current_rate,
    )


def plan_fallback_slice(
    entry: LedgerSnapshot,
    status: str,
    current_rate: float,
    now: datetime,
    created: bool,
) -> SlicePlan | None:
    """Fallback path: production or downtime for the elapsed slice, never both."""
    seconds = elapsed_seconds(now, entry.updated_at)
    minutes = elapsed_minutes(now, entry.updated_at)
    bootstrapped = False
    if (
        created
        and entry.total_production == 0
        and seconds < BOOTSTRAP_THRESHOLD_SECONDS
        and is_running(status)
    ):
        minutes = BOOTSTRAP_MINUTES
        bootstrapped = True
    if minutes <= 0:
        return None

    if is_non_productive(status):
        return SlicePlan(
            elapsed_minutes=minutes,
            rate_applied=0.0,
            produced_delta=0,
            downtime_delta=minutes,
            new_last_known_rate=current_rate,
        )
    if is_running(status):
        rate = rate_for_slice(entry.last_known_rate, current_rate)
        return SlicePlan(
            elapsed_minutes=minutes,
            rate_applied=rate,
            produced_delta=units_for_slice(minutes, rate),
            downtime_delta=0,
            new_last_known_rate=current_rate,
            bootstrapped=bootstrapped,
        )
    # unclassified status: consume the slice without charging either counter
    return SlicePlan(
        elapsed_minutes=minutes,
        rate_applied=0.0,
        produced_delta=0,
        downtime_delta=0,
        new_last_known_rate=current_rate,
    )
