"""Streaming primitives for provider responses.

Providers yield :class:`StreamChunk` objects.  The
:class:`ToolCallAccumulator` reassembles tool calls whose name and
arguments arrive in fragments across multiple chunks.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ToolCallFragment:
    """A fragment of a tool call from a streaming chunk."""

    index: int
    call_id: str | None = None
    name: str | None = None
    arguments_delta: str | None = None


@dataclass
class StreamChunk:
    """Normalised streaming chunk from any provider."""

    content_delta: str | None = None
    thinking_delta: str | None = None
    tool_call_fragments: list[ToolCallFragment] | None = None
    finish_reason: str | None = None


@dataclass(frozen=True)
class ToolCall:
    """A resolved tool call ready for the transcript."""

    id: str = ""
    name: str = ""
    arguments: str = ""


@dataclass
class _PendingCall:
    call_id: str = ""
    name: str = ""
    arguments: str = ""


class ToolCallAccumulator:
    """Assembles complete tool calls from streaming fragments.

    Fragments sharing an index are one call. Argument pieces are joined
    in arrival order; the first non-empty id and name win. A call that
    never received a name is still returned (with ``name=""``) so the
    dispatcher can report it instead of it vanishing.
    """

    def __init__(self) -> None:
        self._pending: dict[int, _PendingCall] = {}

    def feed(self, fragment: ToolCallFragment) -> None:
        pc = self._pending.setdefault(fragment.index, _PendingCall())
        if fragment.call_id and not pc.call_id:
            pc.call_id = fragment.call_id
        if fragment.name and not pc.name:
            pc.name = fragment.name
        if fragment.arguments_delta:
            pc.arguments += fragment.arguments_delta

    def finalize(self) -> list[ToolCall]:
        """Return completed tool calls in index order.

        Calls without an id get ``call_{index}``, suffixed when that
        would clash with an id the server sent.
        """
        taken = {pc.call_id for pc in self._pending.values() if pc.call_id}
        calls = []
        for i in sorted(self._pending):
            pc = self._pending[i]
            call_id = pc.call_id
            if not call_id:
                call_id = f"call_{i}"
                n = 1
                while call_id in taken:
                    call_id = f"call_{i}_{n}"
                    n += 1
                taken.add(call_id)
            calls.append(ToolCall(id=call_id, name=pc.name, arguments=pc.arguments))
        return calls
