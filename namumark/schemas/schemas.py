#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Shared
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    app: str
    renderer_version: int


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Render
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderRequest(BaseModel):
    content: str = ""
    highlight: bool = True

    @field_validator("content")
    @classmethod
    def normalise_newlines(cls, v: str) -> str:
        return v.replace("\r\n", "\n")


# -----------------------------------------------------------------------------

class TocEntryOut(BaseModel):
    level: int = Field(..., ge=1, le=6)
    title: str
    anchor: str

    model_config = {"from_attributes": True}


class FootnoteOut(BaseModel):
    number: int = Field(..., ge=1)
    text: str

    model_config = {"from_attributes": True}


class RenderResponse(BaseModel):
    html: str
    toc: list[TocEntryOut] = []
    footnotes: list[FootnoteOut] = []
    categories: list[str] = []
    renderer_version: int


# -----------------------------------------------------------------------------
