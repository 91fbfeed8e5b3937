"""Advisor assignment rows and the round-robin cursor."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, Integer, String, Uuid

from app.db import Base
from app.models.mixins import TimestampMixin


class AdvisorAssignment(Base, TimestampMixin):
    """One row per contact; advisor_index never changes once written."""

    __tablename__ = "advisor_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contact_identity = Column(String(64), unique=True, nullable=False, index=True)
    advisor_index = Column(Integer, nullable=False)


class AdvisorRotation(Base, TimestampMixin):
    """Single row (key 'default') holding the next index to hand out."""

    __tablename__ = "advisor_rotation"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key = Column(String(32), unique=True, nullable=False, default="default")
    current_index = Column(Integer, nullable=False, default=0)
