from __future__ import annotations

from pydantic import BaseModel


class Advisor(BaseModel):
    name: str
    phone: str


class AdvisorAssignmentRead(BaseModel):
    contact: str
    advisor: Advisor
