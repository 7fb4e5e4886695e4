import time
from typing import Callable

from pydantic import BaseModel, Field, model_validator

from toolstream.message import Message, MessageRole


class Session(BaseModel):
    """Conversation state for one chat.

    The transcript always starts with the system message built from
    ``system_prompt``; the validator adds it when it is missing.
    """

    session_id: str
    system_prompt: str
    transcript: list[Message] = Field(default_factory=list)

    @model_validator(mode="after")
    def ensure_system_message(self):
        if not self.transcript or self.transcript[0].role != MessageRole.SYSTEM:
            self.transcript.insert(
                0, Message(role=MessageRole.SYSTEM, content=self.system_prompt)
            )
        return self

    def reset(self) -> "Session":
        """Return a fresh session holding only the system message."""
        return Session(session_id=self.session_id, system_prompt=self.system_prompt)

    def append(self, *messages: Message) -> None:
        self.transcript.extend(messages)

    def wire_messages(self) -> list[dict]:
        return [m.model_dump() for m in self.transcript]


class InactivityPolicy:
    """Signals a reset once the conversation has been idle too long.

    Args:
        timeout_seconds: Idle time after which the next turn starts
            from a clean session. ``0`` disables resets.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(self, timeout_seconds: float,
                 clock: Callable[[], float] = time.monotonic):
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._last_message_at: float | None = None

    def should_reset(self) -> bool:
        if not self.timeout_seconds or self._last_message_at is None:
            return False
        return self._clock() - self._last_message_at > self.timeout_seconds

    def touch(self) -> None:
        self._last_message_at = self._clock()
