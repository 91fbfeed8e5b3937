"""Round-robin advisor assignment with sticky per-contact mapping."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from app.exceptions import PersistenceError
from app.infra.logging_config import get_logger
from app.schemas.advisor import Advisor, AdvisorAssignmentRead
from app.store.durable_store import DurableStore

logger = get_logger("advisors")

ASSIGNMENTS = "advisor_assignments"
ROTATION = "advisor_rotation"
ROTATION_KEY = "default"


class AdvisorAssignmentService:
    """
    Hands each new contact the advisor under the rotation cursor and then
    advances the cursor. A contact keeps its advisor until reset_assignments().
    """

    def __init__(self, store: DurableStore, advisors: Sequence[Advisor]) -> None:
        if not advisors:
            raise ValueError("Advisor pool must not be empty")
        self._store = store
        self._advisors: List[Advisor] = list(advisors)
        self._assignments: Dict[str, int] = {}
        self._current_index = 0
        self._loaded = False
        self._load_lock = asyncio.Lock()

    @property
    def current_index(self) -> int:
        return self._current_index

    async def load(self) -> None:
        async with self._load_lock:
            if self._loaded:
                return
            try:
                rows = await self._store.find_all(ASSIGNMENTS)
                rotation = await self._store.find_one(ROTATION, {"key": ROTATION_KEY})
            except PersistenceError as e:
                logger.error("Error loading advisor assignments: %s", e)
                rows, rotation = [], None
            for row in rows:
                self._assignments.setdefault(
                    row["contact_identity"], row["advisor_index"] % len(self._advisors)
                )
            if rotation is not None:
                self._current_index = rotation["current_index"] % len(self._advisors)
            self._loaded = True

    async def get_or_assign_advisor(self, contact_identity: str) -> Advisor:
        await self.load()
        existing = self._assignments.get(contact_identity)
        if existing is not None:
            return self._advisors[existing]

        index = self._current_index
        self._assignments[contact_identity] = index
        self._current_index = (index + 1) % len(self._advisors)
        advisor = self._advisors[index]
        logger.info("New advisor assigned for %s: %s", contact_identity, advisor.name)

        await self._persist_assignment(contact_identity, index, self._current_index)
        return advisor

    async def _persist_assignment(
        self, contact_identity: str, index: int, cursor: int
    ) -> None:
        try:
            await self._store.insert(
                ASSIGNMENTS, {"contact_identity": contact_identity, "advisor_index": index}
            )
            await self._save_cursor(cursor)
        except PersistenceError as e:
            logger.error("Error saving advisor assignment for %s: %s", contact_identity, e)

    async def _save_cursor(self, cursor: int) -> None:
        updated = await self._store.update(
            ROTATION, {"current_index": cursor}, {"key": ROTATION_KEY}
        )
        if not updated:
            await self._store.insert(ROTATION, {"key": ROTATION_KEY, "current_index": cursor})

    async def get_assigned_advisor(self, contact_identity: str) -> Optional[Advisor]:
        await self.load()
        index = self._assignments.get(contact_identity)
        return self._advisors[index] if index is not None else None

    def list_advisors(self) -> List[Advisor]:
        return list(self._advisors)

    async def list_assignments(self) -> List[AdvisorAssignmentRead]:
        await self.load()
        return [
            AdvisorAssignmentRead(contact=contact, advisor=self._advisors[index])
            for contact, index in self._assignments.items()
        ]

    async def reset_assignments(self) -> None:
        """Forget every mapping and rewind the cursor."""
        self._assignments.clear()
        self._current_index = 0
        self._loaded = True
        try:
            await self._store.delete(ASSIGNMENTS, {})
            await self._save_cursor(0)
        except PersistenceError as e:
            logger.error("Error resetting advisor assignments: %s", e)
        logger.info("Advisor assignments reset")
