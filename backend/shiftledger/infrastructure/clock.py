"""Clock — the single wall-clock read used by the accumulator and poller."""

from datetime import datetime, timezone


class SystemClock:
    """Timezone-aware UTC wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
