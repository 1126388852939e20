"""Operator Directory — best-effort operator attribution for fallback ledger rows.

Invariants:
    - First active OPERATOR (lowest id) wins
    - The placeholder id is only returned if that user actually exists
    - No candidate at all raises MissingShiftContextError (caller skips the machine)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftledger.core.domain_types import OperatorId, OperatorRole
from shiftledger.core.errors import MissingShiftContextError
from shiftledger.models.operator import Operator

logger = logging.getLogger(__name__)


class SqlOperatorDirectory:

    def __init__(self, db: AsyncSession, placeholder_operator_id: int | None = None):
        self.db = db
        self.placeholder_operator_id = placeholder_operator_id

    async def default_operator_id(self) -> OperatorId:
        result = await self.db.execute(
            select(Operator.id)
            .where(
                Operator.role == OperatorRole.OPERATOR.value,
                Operator.is_active.is_(True),
            )
            .order_by(Operator.id)
            .limit(1),
        )
        operator_id = result.scalar_one_or_none()
        if operator_id is not None:
            return OperatorId(operator_id)

        if self.placeholder_operator_id is not None:
            placeholder = await self.db.get(Operator, self.placeholder_operator_id)
            if placeholder is not None:
                logger.info(
                    "No active operator, attributing to placeholder user %s",
                    self.placeholder_operator_id,
                )
                return OperatorId(placeholder.id)

        raise MissingShiftContextError(
            "No active operator or placeholder user to attribute the shift to",
        )
