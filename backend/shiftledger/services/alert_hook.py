"""Alert Hook — default hand-off point for production alert evaluation.

Alert rules live in an external service; this implementation only records the
cumulative totals it was handed so the hand-off is visible in the logs.
"""

import logging

from shiftledger.core.domain_types import MachineId

logger = logging.getLogger(__name__)


class LoggingAlertHook:

    def __init__(self):
        self.last_totals: dict[MachineId, int] = {}

    async def evaluate(self, machine_id: MachineId, cumulative_total: int) -> None:
        previous = self.last_totals.get(machine_id)
        self.last_totals[machine_id] = cumulative_total
        logger.debug(
            "Alert evaluation requested (total %s, previous %s)",
            cumulative_total, previous,
            extra={"machine_id": machine_id},
        )
