from toolstream.chat import Chat
from toolstream.config import ChatConfig
from toolstream.events import (
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    ToolCompleted,
    ToolInvoked,
    TurnEnded,
)
from toolstream.history import HistoryWriter
from toolstream.instrumentation import instrument, uninstrument
from toolstream.message import Message, MessageRole
from toolstream.provider import (
    LMStudioProvider,
    ModelProvider,
    OpenAICompatibleProvider,
)
from toolstream.runner import MaxRoundsExceeded, Runner
from toolstream.session import InactivityPolicy, Session
from toolstream.tools import Tool, ToolRegistry, tool

__all__ = [
    "Chat",
    "ChatConfig",
    "HistoryWriter",
    "InactivityPolicy",
    "LMStudioProvider",
    "MaxRoundsExceeded",
    "Message",
    "MessageRole",
    "ModelProvider",
    "OpenAICompatibleProvider",
    "Runner",
    "Session",
    "StreamEvent",
    "TextDelta",
    "ThinkingDelta",
    "Tool",
    "ToolCompleted",
    "ToolInvoked",
    "ToolRegistry",
    "TurnEnded",
    "instrument",
    "tool",
    "uninstrument",
]
