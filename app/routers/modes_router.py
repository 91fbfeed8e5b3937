"""Modes API: who owns each conversation (ai, human, support)."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from app.routers.utils.dependencies import get_identity, get_operator_service
from app.schemas.mode import ModeRead, ModeUpdate
from app.schemas.operator import OperatorActionResult
from app.services.operator_service import OperatorService

modes_router = APIRouter(prefix="/modes", tags=["Mode"])


@modes_router.get("", response_model=List[ModeRead])
async def list_modes(
    operator: OperatorService = Depends(get_operator_service),
) -> List[ModeRead]:
    """List every known contact and its current mode."""
    return await operator.list_modes()


@modes_router.get("/{identity}", response_model=ModeRead)
async def get_mode(
    identity: str = Depends(get_identity),
    operator: OperatorService = Depends(get_operator_service),
) -> ModeRead:
    return await operator.get_mode(identity)


@modes_router.put("/{identity}", response_model=ModeRead)
async def set_mode(
    data: ModeUpdate,
    identity: str = Depends(get_identity),
    operator: OperatorService = Depends(get_operator_service),
) -> ModeRead:
    """Hand the conversation to the AI, a human operator or support."""
    return await operator.set_mode(identity, data.mode, activated_by=data.activated_by)


@modes_router.delete("/{identity}", response_model=OperatorActionResult)
async def remove_contact(
    identity: str = Depends(get_identity),
    operator: OperatorService = Depends(get_operator_service),
) -> OperatorActionResult:
    await operator.remove_contact(identity)
    return OperatorActionResult(identity=identity, message=f"Contacto {identity} removido")
