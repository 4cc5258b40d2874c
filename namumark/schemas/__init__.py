from namumark.schemas.schemas import (
    HealthResponse,
    RenderRequest, RenderResponse,
    TocEntryOut, FootnoteOut,
)

__all__ = [
    "HealthResponse",
    "RenderRequest", "RenderResponse",
    "TocEntryOut", "FootnoteOut",
]
