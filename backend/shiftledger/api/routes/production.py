"""Production Routes — forced updates, ledger reads and the live update stream.

Invariants:
    - Unknown machines → 404 via ResourceNotFoundError (global handler)
    - force-update returns 200 with updated=false when nothing was accumulated
      (machine not running, no open operation, or slice under one minute)
    - The stream only relays events; it never touches the ledger

Design Decisions:
    - StreamingResponse for SSE: event_generator yields formatted SSE lines
    - Poller and publisher are read from app.state (built in the lifespan) so
      tests can install their own instances
"""

import asyncio
import json
import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shiftledger.core.domain_types import MachineId
from shiftledger.core.errors import ResourceNotFoundError
from shiftledger.infrastructure.database import get_db
from shiftledger.models.machine import Machine
from shiftledger.schemas.production import (
    ForceUpdateResponse, LedgerEntryResponse, LedgerListResponse,
)
from shiftledger.services.event_publisher import BroadcastEventPublisher
from shiftledger.services.production_poller import ProductionPoller
from shiftledger.services.shift_ledger import SqlShiftLedger

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/production", tags=["production"])

# SSE headers prevent proxy/browser buffering of streamed events.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}
KEEPALIVE_SECONDS = 15.0


def get_poller(request: Request) -> ProductionPoller:
    return request.app.state.poller


def get_publisher(request: Request) -> BroadcastEventPublisher:
    return request.app.state.publisher


def _sse_line(event: dict) -> str:
    return f"data: {json.dumps(event, default=str)}\n\n"


async def _require_machine(machine_id: int, db: AsyncSession) -> Machine:
    machine = await db.get(Machine, machine_id)
    if machine is None:
        raise ResourceNotFoundError("Machine", str(machine_id))
    return machine


@router.post(
    "/machines/{machine_id}/force-update", response_model=ForceUpdateResponse,
)
async def force_update(
    machine_id: int,
    db: AsyncSession = Depends(get_db),
    poller: ProductionPoller = Depends(get_poller),
):
    """Run the accumulation for one machine outside the normal cadence."""
    await _require_machine(machine_id, db)
    updated = await poller.force_update(MachineId(machine_id))
    return ForceUpdateResponse(machine_id=machine_id, updated=updated)


@router.get(
    "/machines/{machine_id}/ledger", response_model=LedgerListResponse,
)
async def machine_ledger(
    machine_id: int,
    limit: int = Query(30, ge=1, le=500),
    since: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Ledger rows for a machine, most recent shift first."""
    await _require_machine(machine_id, db)
    entries = await SqlShiftLedger(db).list_for_machine(
        MachineId(machine_id), limit=limit, since=since,
    )
    return LedgerListResponse(
        machine_id=machine_id,
        entries=[LedgerEntryResponse.from_snapshot(e) for e in entries],
    )


@router.get("/poller")
async def poller_status(poller: ProductionPoller = Depends(get_poller)):
    return poller.status()


@router.get("/stream")
async def production_stream(
    publisher: BroadcastEventPublisher = Depends(get_publisher),
):
    """SSE stream of production updates as they are committed."""

    async def event_generator():
        async with publisher.subscribe() as queue:
            try:
                while True:
                    try:
                        event = await asyncio.wait_for(
                            queue.get(), timeout=KEEPALIVE_SECONDS,
                        )
                    except asyncio.TimeoutError:
                        yield ": keepalive\n\n"
                        continue
                    yield _sse_line(event.to_sse_event())
            except asyncio.CancelledError:
                logger.info("Client disconnected from production stream")
                return

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
