import json
from collections.abc import AsyncIterator

import pytest

from toolstream.message import Message, MessageRole
from toolstream.provider import ModelProvider
from toolstream.session import Session
from toolstream.streaming import StreamChunk, ToolCallFragment
from toolstream.tools import ToolRegistry, tool


# ---------------------------------------------------------------------------
# Mock provider
# ---------------------------------------------------------------------------

class MockProvider(ModelProvider):
    """Provider that streams pre-queued chunk lists. No network calls.

    Each entry of ``rounds`` is the list of chunks for one request. An
    exception instance in a chunk list is raised at that point of the
    stream.
    """

    system = "mock"

    def __init__(self):
        self.rounds: list[list] = []
        self.call_log: list[dict] = []

    async def stream_complete(
        self, model, messages, tools=None,
    ) -> AsyncIterator[StreamChunk]:
        self.call_log.append({
            "model": model,
            "messages": [dict(m) for m in messages],
            "tools": tools,
        })
        for item in self.rounds.pop(0):
            if isinstance(item, BaseException):
                raise item
            yield item


# ---------------------------------------------------------------------------
# Chunk builder helpers
# ---------------------------------------------------------------------------

def text_chunks(*parts: str) -> list[StreamChunk]:
    """Stream of plain text deltas."""
    return [StreamChunk(content_delta=p) for p in parts] + [
        StreamChunk(finish_reason="stop")
    ]


def tool_call_chunks(
    name: str,
    args: dict | str,
    call_id: str = "call_1",
    index: int = 0,
    pieces: int = 2,
) -> list[StreamChunk]:
    """Stream of one tool call whose arguments arrive in *pieces* parts."""
    arguments = args if isinstance(args, str) else json.dumps(args)
    step = max(1, -(-len(arguments) // pieces))
    parts = [arguments[i:i + step] for i in range(0, len(arguments), step)] or [""]
    chunks = [StreamChunk(tool_call_fragments=[ToolCallFragment(
        index=index, call_id=call_id, name=name, arguments_delta=parts[0],
    )])]
    chunks += [
        StreamChunk(tool_call_fragments=[ToolCallFragment(
            index=index, arguments_delta=p,
        )])
        for p in parts[1:]
    ]
    chunks.append(StreamChunk(finish_reason="tool_calls"))
    return chunks


def user(content: str) -> Message:
    return Message(role=MessageRole.USER, content=content)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@tool
async def getWeather(city: str = ""):
    """Current weather for a city."""
    return "22C"


@tool
def echo(text: str):
    """Echo text back."""
    return text


@tool
def explode():
    """Always fails."""
    raise RuntimeError("boom")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_provider():
    return MockProvider()


@pytest.fixture
def registry():
    return ToolRegistry([getWeather, echo, explode])


@pytest.fixture
def session():
    return Session(session_id="s1", system_prompt="You are helpful.")
