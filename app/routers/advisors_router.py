"""Advisors API: pool, sticky assignments and reset."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.routers.utils.dependencies import get_advisor_service, get_identity
from app.schemas.advisor import Advisor, AdvisorAssignmentRead
from app.services.advisor_assignment_service import AdvisorAssignmentService

advisors_router = APIRouter(prefix="/advisors", tags=["Advisor"])


@advisors_router.get("", response_model=List[Advisor])
async def list_advisors(
    advisors: AdvisorAssignmentService = Depends(get_advisor_service),
) -> List[Advisor]:
    return advisors.list_advisors()


@advisors_router.get("/assignments", response_model=List[AdvisorAssignmentRead])
async def list_assignments(
    advisors: AdvisorAssignmentService = Depends(get_advisor_service),
) -> List[AdvisorAssignmentRead]:
    return await advisors.list_assignments()


@advisors_router.get("/assignments/{identity}", response_model=Advisor)
async def get_assigned_advisor(
    identity: str = Depends(get_identity),
    advisors: AdvisorAssignmentService = Depends(get_advisor_service),
) -> Advisor:
    advisor = await advisors.get_assigned_advisor(identity)
    if advisor is None:
        raise HTTPException(status_code=404, detail="No advisor assigned")
    return advisor


@advisors_router.post("/assignments/{identity}", response_model=Advisor)
async def assign_advisor(
    identity: str = Depends(get_identity),
    advisors: AdvisorAssignmentService = Depends(get_advisor_service),
) -> Advisor:
    """Return the contact's advisor, assigning the next one in rotation if needed."""
    return await advisors.get_or_assign_advisor(identity)


@advisors_router.delete("/assignments", status_code=204)
async def reset_assignments(
    advisors: AdvisorAssignmentService = Depends(get_advisor_service),
) -> None:
    await advisors.reset_assignments()
