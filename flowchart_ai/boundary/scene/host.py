"""
Scene-graph host boundary.

The canvas widget that owns scene elements is external; the pipeline only
needs get/set access to a document's elements. InMemorySceneHost serves the
stateless HTTP endpoints (one host per request) and tests.

Dependencies: asyncio
System role: Adapter for the scene-graph host
"""

import asyncio
from typing import Protocol, runtime_checkable

from flowchart_ai.models.scene import SceneElement


@runtime_checkable
class SceneGraphHost(Protocol):
    """Read/write access to one document's scene."""

    lock: asyncio.Lock

    async def get_elements(self) -> list[SceneElement]:
        ...

    async def replace_elements(self, elements: list[SceneElement]) -> None:
        ...


class InMemorySceneHost:
    """
    Scene held as an immutable tuple.

    replace_elements swaps the whole tuple in one assignment, so a concurrent
    reader sees either the old scene or the new one, never a mix.
    """

    def __init__(self, elements: list[SceneElement] | None = None) -> None:
        self._elements: tuple[SceneElement, ...] = tuple(elements or ())
        self.lock = asyncio.Lock()
        self.version = 0

    async def get_elements(self) -> list[SceneElement]:
        return list(self._elements)

    async def replace_elements(self, elements: list[SceneElement]) -> None:
        self._elements = tuple(elements)
        self.version += 1
