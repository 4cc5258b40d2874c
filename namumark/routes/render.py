#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoint — live preview for the editor.

GET  /api/v1/render?content=...
POST /api/v1/render   {"content": "...", "highlight": true}
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from namumark.core.config import get_settings
from namumark.schemas import FootnoteOut, RenderRequest, RenderResponse, TocEntryOut
from namumark.services.highlight import plain_code
from namumark.services.renderer import RENDERER_VERSION, RenderHooks, render_markup

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


# -----------------------------------------------------------------------------

def _render(content: str, highlight: bool = True) -> RenderResponse:
    settings = get_settings()
    if len(content) > settings.max_content_length:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Content exceeds {settings.max_content_length} characters",
        )
    hooks = RenderHooks() if highlight else RenderHooks(highlight=plain_code)
    result = render_markup(content, hooks)
    log.debug("rendered %d chars: %d toc entries, %d footnotes",
              len(content), len(result.toc), len(result.footnotes))
    return RenderResponse(
        html=result.html,
        toc=[TocEntryOut.model_validate(entry) for entry in result.toc],
        footnotes=[FootnoteOut.model_validate(fn) for fn in result.footnotes],
        categories=result.categories,
        renderer_version=RENDERER_VERSION,
    )


@router.get("", response_model=RenderResponse)
async def render_preview(
    content:   str = Query(default=""),
    highlight: bool = Query(default=True),
):
    """Return rendered HTML for a snippet of markup — used by the live editor preview."""
    return _render(content, highlight)


@router.post("", response_model=RenderResponse)
async def render_document(body: RenderRequest):
    """Render a full page body sent as JSON."""
    return _render(body.content, body.highlight)


# -----------------------------------------------------------------------------
