"""Events emitted while a chat turn is running.

A turn yields zero or more :class:`TextDelta`, :class:`ThinkingDelta`,
:class:`ToolInvoked` and :class:`ToolCompleted` events and always ends
with exactly one :class:`TurnEnded`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolstream.message import Message


@dataclass
class StreamEvent:
    """Base for all streaming events."""


@dataclass
class TextDelta(StreamEvent):
    """Token-level answer text, in stream order."""

    content: str = ""


@dataclass
class ThinkingDelta(StreamEvent):
    """Reasoning text some models stream ahead of the answer."""

    content: str = ""


@dataclass
class ToolInvoked(StreamEvent):
    """A registered tool is about to run."""

    name: str = ""
    call_id: str = ""


@dataclass
class ToolCompleted(StreamEvent):
    """A registered tool finished; ``result`` is what the model will see."""

    name: str = ""
    call_id: str = ""
    result: str = ""
    is_error: bool = False


@dataclass
class TurnEnded(StreamEvent):
    """Final event of a turn.

    ``message`` is the final assistant message on success; ``error`` is
    set instead when the turn failed.
    """

    message: Message | None = None
    rounds: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
