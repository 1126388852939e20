"""Operator Directory tests — who a fallback ledger row is attributed to."""

import pytest

from shiftledger.core.errors import MissingShiftContextError
from shiftledger.services.operator_directory import SqlOperatorDirectory


async def test_lowest_active_operator_wins(test_db_manager, seed):
    await seed.operator(name="Retired", is_active=False)
    await seed.operator(name="Manager", role="MANAGER")
    first = await seed.operator(name="Ana")
    await seed.operator(name="Bruno")

    async with test_db_manager.session() as db:
        assert await SqlOperatorDirectory(db).default_operator_id() == first


async def test_placeholder_used_when_it_exists(test_db_manager, seed):
    admin = await seed.operator(name="System", role="ADMIN")

    async with test_db_manager.session() as db:
        directory = SqlOperatorDirectory(db, placeholder_operator_id=admin)
        assert await directory.default_operator_id() == admin


async def test_missing_placeholder_raises(test_db_manager):
    async with test_db_manager.session() as db:
        directory = SqlOperatorDirectory(db, placeholder_operator_id=1)
        with pytest.raises(MissingShiftContextError):
            await directory.default_operator_id()


async def test_no_placeholder_configured_raises(test_db_manager, seed):
    await seed.operator(name="Leader", role="LEADER")

    async with test_db_manager.session() as db:
        with pytest.raises(MissingShiftContextError):
            await SqlOperatorDirectory(db).default_operator_id()
