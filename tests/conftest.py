#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for namumark tests.
The compiler is pure, so only the HTTP tests need an app instance.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Iterator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from namumark.main import create_app
from namumark.services.renderer import Element, Node


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def client():
    """HTTP test client wired to a fresh app instance."""
    app = create_app()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

def find_elements(node: Node, tag: str) -> Iterator[Element]:
    """Depth-first walk of an output tree yielding every element with *tag*."""
    if isinstance(node, Element):
        if node.tag == tag:
            yield node
        for child in node.children:
            yield from find_elements(child, tag)


# -----------------------------------------------------------------------------
