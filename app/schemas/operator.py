from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OperatorMessageCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=4096)
    responder_id: Optional[str] = Field(default=None, max_length=100)


class OperatorActionResult(BaseModel):
    success: bool = True
    identity: str
    message: str


class PromptRead(BaseModel):
    content: str


class PromptUpdate(BaseModel):
    content: str = Field(..., min_length=1)
