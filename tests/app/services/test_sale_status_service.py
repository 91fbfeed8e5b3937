"""Tests for SaleStatusService."""

from datetime import timedelta

import pytest

from app.schemas.sale_status import SaleStage, SaleStatusUpdate
from app.services.sale_status_service import SaleStatusService
from app.store.durable_store import DurableStore
from app.utils.dates import utcnow


@pytest.mark.asyncio
async def test_unknown_contact_has_default_status(sale_status_service: SaleStatusService):
    status = await sale_status_service.get_sale_status("a")
    assert status.stage == SaleStage.INITIAL_CONTACT
    assert status.interest_level == 0
    assert status.last_interaction is None


@pytest.mark.asyncio
async def test_partial_update_keeps_other_fields(sale_status_service: SaleStatusService):
    await sale_status_service.mark_interested("a", products=["limpieza"])
    status = await sale_status_service.update_sale_status("a", SaleStatusUpdate(notes="Llamar lunes"))

    assert status.stage == SaleStage.INTERESTED
    assert status.products_interested == ["limpieza"]
    assert status.notes == "Llamar lunes"
    assert status.last_interaction is not None


@pytest.mark.asyncio
async def test_get_many_fills_defaults(sale_status_service: SaleStatusService):
    await sale_status_service.mark_qualified("a")

    statuses = await sale_status_service.get_many(["a", "b"])

    assert statuses["a"].stage == SaleStage.QUALIFIED
    assert statuses["b"].stage == SaleStage.INITIAL_CONTACT
    assert await sale_status_service.get_many([]) == {}


@pytest.mark.asyncio
async def test_stage_helpers(sale_status_service: SaleStatusService):
    assert (await sale_status_service.mark_qualified("a", objections=["precio"])).interest_level == 7
    assert (await sale_status_service.mark_proposal("a")).stage == SaleStage.PROPOSAL
    won = await sale_status_service.mark_closed_won("a")
    assert won.stage.is_closed
    assert won.interest_level == 10
    assert won.objections == ["precio"]


@pytest.mark.asyncio
async def test_hot_leads_and_list_by_stage(sale_status_service: SaleStatusService):
    await sale_status_service.mark_interested("warm")
    await sale_status_service.mark_proposal("hot")
    await sale_status_service.mark_qualified("qualified")
    await sale_status_service.mark_closed_won("won")

    hot = await sale_status_service.get_hot_leads()
    assert [s.identity for s in hot] == ["hot", "qualified"]
    assert [s.identity for s in await sale_status_service.list_by_stage(SaleStage.INTERESTED)] == ["warm"]


@pytest.mark.asyncio
async def test_stale_leads_and_cleanup(sale_status_service: SaleStatusService, store: DurableStore):
    await sale_status_service.mark_interested("stale")
    await sale_status_service.mark_closed_lost("lost")
    await sale_status_service.mark_interested("fresh")
    old = utcnow() - timedelta(days=200)
    await store.update("sale_status", {"last_interaction": old}, {"identity": ["stale", "lost"]})

    assert [s.identity for s in await sale_status_service.get_stale_leads()] == ["stale"]
    assert await sale_status_service.cleanup_old_sales() == 1
    assert await store.find_one("sale_status", {"identity": "lost"}) is None


@pytest.mark.asyncio
async def test_sales_stats(sale_status_service: SaleStatusService):
    await sale_status_service.mark_interested("a")
    await sale_status_service.mark_closed_won("b")
    await sale_status_service.mark_closed_lost("c")
    await sale_status_service.mark_closed_won("d")

    stats = await sale_status_service.get_sales_stats()
    assert stats.total == 4
    assert stats.by_stage["closed_won"] == 2
    assert stats.by_stage["proposal"] == 0
    assert stats.avg_interest_level == 6.25
    assert stats.conversion_rate == 50.0

    future = utcnow() + timedelta(days=1)
    assert (await sale_status_service.get_sales_stats(start=future)).total == 0
