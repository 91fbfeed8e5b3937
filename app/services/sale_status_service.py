"""Sales pipeline status per contact, stored in the ``sale_status`` collection."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.exceptions import PersistenceError
from app.infra.logging_config import get_logger
from app.schemas.sale_status import (
    SaleStage,
    SalesStats,
    SaleStatusRead,
    SaleStatusUpdate,
)
from app.store.durable_store import DurableStore, Record
from app.utils.dates import as_utc, utcnow

logger = get_logger("sales")

COLLECTION = "sale_status"

OPEN_STAGES = [SaleStage.INTERESTED.value, SaleStage.QUALIFIED.value, SaleStage.PROPOSAL.value]
CLOSED_STAGES = [SaleStage.CLOSED_WON.value, SaleStage.CLOSED_LOST.value]


def _to_read(record: Record) -> SaleStatusRead:
    return SaleStatusRead(
        **{
            **record,
            "products_interested": record.get("products_interested") or [],
            "objections": record.get("objections") or [],
            "last_interaction": as_utc(record.get("last_interaction")),
            "created_at": as_utc(record.get("created_at")),
        }
    )


class SaleStatusService:
    def __init__(self, store: DurableStore) -> None:
        self._store = store

    async def get_sale_status(self, identity: str) -> SaleStatusRead:
        """Stored status, or the initial-contact default for unknown contacts."""
        try:
            record = await self._store.find_one(COLLECTION, {"identity": identity})
        except PersistenceError as e:
            logger.error("Error reading sale status for %s: %s", identity, e)
            record = None
        if record is None:
            return SaleStatusRead(identity=identity)
        return _to_read(record)

    async def get_many(self, identities: List[str]) -> Dict[str, SaleStatusRead]:
        """Status per identity; contacts without a row get the default."""
        statuses = {identity: SaleStatusRead(identity=identity) for identity in identities}
        if not identities:
            return statuses
        try:
            rows = await self._store.find_all(COLLECTION, {"identity": list(identities)})
        except PersistenceError as e:
            logger.error("Error reading sale statuses: %s", e)
            return statuses
        for row in rows:
            statuses[row["identity"]] = _to_read(row)
        return statuses

    async def update_sale_status(
        self, identity: str, update: SaleStatusUpdate
    ) -> SaleStatusRead:
        """Create or partially update a contact's status. Raises PersistenceError."""
        fields: Dict[str, Any] = update.model_dump(exclude_unset=True, mode="json")
        fields["last_interaction"] = utcnow()
        updated = await self._store.update(COLLECTION, fields, {"identity": identity})
        if not updated:
            await self._store.insert(COLLECTION, {"identity": identity, **fields})
        return await self.get_sale_status(identity)

    async def mark_stage(
        self,
        identity: str,
        stage: SaleStage,
        interest_level: int,
        next_action: str,
        products: Optional[List[str]] = None,
        objections: Optional[List[str]] = None,
        notes: Optional[str] = None,
    ) -> SaleStatusRead:
        update = SaleStatusUpdate(
            stage=stage, interest_level=interest_level, next_action=next_action
        )
        if products is not None:
            update.products_interested = products
        if objections is not None:
            update.objections = objections
        if notes is not None:
            update.notes = notes
        return await self.update_sale_status(identity, update)

    async def mark_interested(self, identity: str, products=None, notes=None) -> SaleStatusRead:
        return await self.mark_stage(
            identity, SaleStage.INTERESTED, 5, "Seguimiento de interés",
            products=products, notes=notes,
        )

    async def mark_qualified(
        self, identity: str, products=None, objections=None, notes=None
    ) -> SaleStatusRead:
        return await self.mark_stage(
            identity, SaleStage.QUALIFIED, 7, "Preparar propuesta",
            products=products, objections=objections, notes=notes,
        )

    async def mark_proposal(self, identity: str, notes=None) -> SaleStatusRead:
        return await self.mark_stage(
            identity, SaleStage.PROPOSAL, 8, "Esperar respuesta de propuesta", notes=notes
        )

    async def mark_closed_won(self, identity: str, products=None, notes=None) -> SaleStatusRead:
        return await self.mark_stage(
            identity, SaleStage.CLOSED_WON, 10, "Proceso de entrega",
            products=products, notes=notes,
        )

    async def mark_closed_lost(self, identity: str, objections=None, notes=None) -> SaleStatusRead:
        return await self.mark_stage(
            identity, SaleStage.CLOSED_LOST, 0, "Seguimiento a largo plazo",
            objections=objections, notes=notes,
        )

    async def list_by_stage(self, stage: SaleStage) -> List[SaleStatusRead]:
        try:
            rows = await self._store.find_all(
                COLLECTION, {"stage": stage.value}, order_by="-last_interaction"
            )
        except PersistenceError as e:
            logger.error("Error listing sales in stage %s: %s", stage, e)
            return []
        return [_to_read(row) for row in rows]

    async def get_hot_leads(self, limit: int = 10) -> List[SaleStatusRead]:
        """Open leads with interest level 6 or more, hottest first."""
        try:
            rows = await self._store.find_all(
                COLLECTION,
                {"stage": OPEN_STAGES, "interest_level": {"operator": ">=", "value": 6}},
                order_by=["-interest_level", "-last_interaction"],
                limit=limit,
            )
        except PersistenceError as e:
            logger.error("Error reading hot leads: %s", e)
            return []
        return [_to_read(row) for row in rows]

    async def get_stale_leads(
        self, days: int = 7, now: Optional[datetime] = None
    ) -> List[SaleStatusRead]:
        """Leads not closed and without interaction for ``days``, oldest first."""
        cutoff = (now or utcnow()) - timedelta(days=days)
        try:
            rows = await self._store.find_all(
                COLLECTION,
                {
                    "stage": {"operator": "not in", "value": CLOSED_STAGES},
                    "last_interaction": {"operator": "<", "value": cutoff},
                },
                order_by="last_interaction",
            )
        except PersistenceError as e:
            logger.error("Error reading stale leads: %s", e)
            return []
        return [_to_read(row) for row in rows]

    async def get_sales_stats(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> SalesStats:
        predicate: Dict[str, Any] = {}
        if start and end:
            predicate["created_at"] = {"operator": "range", "value": (start, end)}
        elif start:
            predicate["created_at"] = {"operator": ">=", "value": start}
        try:
            rows = await self._store.find_all(COLLECTION, predicate)
        except PersistenceError as e:
            logger.error("Error computing sales stats: %s", e)
            return SalesStats()
        stats = SalesStats(total=len(rows))
        if not rows:
            return stats
        for row in rows:
            stats.by_stage[row["stage"]] = stats.by_stage.get(row["stage"], 0) + 1
        stats.avg_interest_level = round(
            sum(row["interest_level"] or 0 for row in rows) / len(rows), 2
        )
        stats.conversion_rate = round(
            stats.by_stage[SaleStage.CLOSED_WON.value] / len(rows) * 100, 2
        )
        return stats

    async def cleanup_old_sales(self, days: int = 180, now: Optional[datetime] = None) -> int:
        """Delete closed leads whose last interaction is older than ``days``."""
        cutoff = (now or utcnow()) - timedelta(days=days)
        try:
            deleted = await self._store.delete(
                COLLECTION,
                {
                    "stage": CLOSED_STAGES,
                    "last_interaction": {"operator": "<", "value": cutoff},
                },
            )
        except PersistenceError as e:
            logger.error("Error cleaning up old sales: %s", e)
            return 0
        logger.info("Removed %d old closed sales", deleted)
        return deleted
