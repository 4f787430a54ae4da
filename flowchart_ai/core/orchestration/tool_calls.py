"""
Tool-call fragment accumulation.

Streamed tool calls arrive as fragments keyed by slot index. Fragments for the
same slot are merged by concatenating argument strings in arrival order;
names and ids are taken from whichever fragment carries them.

Dependencies: pydantic
System role: Reassembles streamed tool invocations
"""

import uuid

from pydantic import BaseModel

from flowchart_ai.models.conversation import ToolCall


class ToolCallFragment(BaseModel):
    """
    Partial tool invocation from one stream chunk.

    Attributes:
        index: Stream-assigned slot (None when the provider omits it)
        id: Invocation id, usually only on the first fragment
        name: Tool name, usually only on the first fragment
        arguments: Piece of the JSON argument string
    """

    index: int | None = None
    id: str | None = None
    name: str | None = None
    arguments: str = ""


class _Slot:
    __slots__ = ("index", "id", "name", "arguments")

    def __init__(self, index: int) -> None:
        self.index = index
        self.id: str | None = None
        self.name: str | None = None
        self.arguments: list[str] = []


class ToolCallAccumulator:
    """
    Collects fragments for one sub-turn.

    Usage:
        accumulator = ToolCallAccumulator()
        for fragment in fragments:
            accumulator.add(fragment)
        calls = accumulator.complete()
    """

    def __init__(self) -> None:
        self._slots: dict[int, _Slot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def _resolve_index(self, fragment: ToolCallFragment) -> int:
        if fragment.index is not None:
            return fragment.index
        if fragment.id:
            for slot in self._slots.values():
                if slot.id == fragment.id:
                    return slot.index
        # No index and no known id: a new slot after the highest one seen.
        return max(self._slots, default=-1) + 1

    def add(self, fragment: ToolCallFragment) -> None:
        index = self._resolve_index(fragment)
        slot = self._slots.get(index)
        if slot is None:
            slot = self._slots[index] = _Slot(index)
        if fragment.id:
            slot.id = fragment.id
        if fragment.name:
            slot.name = fragment.name
        if fragment.arguments:
            slot.arguments.append(fragment.arguments)

    def arguments_for(self, index: int) -> str:
        """Concatenated argument string for a slot."""
        slot = self._slots.get(index)
        return "".join(slot.arguments) if slot else ""

    def complete(self) -> list[ToolCall]:
        """
        Finalize all slots in index order.

        Slots without an id get a generated one so results can be correlated.

        Returns:
            list[ToolCall]: Completed invocations
        """
        calls = []
        for index in sorted(self._slots):
            slot = self._slots[index]
            calls.append(
                ToolCall(
                    id=slot.id or f"call_{uuid.uuid4().hex[:24]}",
                    name=slot.name or "",
                    arguments="".join(slot.arguments),
                )
            )
        return calls
