from enum import Enum
from pydantic import BaseModel, field_serializer, model_serializer

from toolstream.streaming import ToolCall


class MessageRole(Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"
    TOOL = "tool"


class Message(BaseModel):
    """One entry of a conversation transcript.

    ``tool_calls`` is only set on assistant messages that requested
    tools, ``tool_call_id`` only on tool results. Both are left out of
    the serialized form when unset, so the dump is what the completion
    endpoint expects.
    """

    role: MessageRole
    content: str = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @field_serializer('role')
    def serialize_role(self, role: MessageRole, _info) -> str:
        return role.value

    @field_serializer("tool_calls")
    def serialize_tool_calls(self, tool_calls: list[ToolCall] | None):
        if tool_calls is None:
            return None
        return [
            {
                "id": t.id,
                "type": "function",
                "function": {
                    "name": t.name,
                    "arguments": t.arguments,
                }
            }
            for t in tool_calls
        ]

    @model_serializer(mode="wrap")
    def drop_unset_optionals(self, handler):
        data = handler(self)
        for key in ("tool_calls", "tool_call_id"):
            if data.get(key) is None:
                data.pop(key, None)
        return data
