import logging
import uuid
from collections.abc import AsyncIterator, Iterable
from typing import Callable

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
from toolstream.message import Message
from toolstream.provider import LMStudioProvider, ModelProvider
from toolstream.runner import Runner
from toolstream.session import InactivityPolicy, Session
from toolstream.tools import ToolRegistry

logger = logging.getLogger(__name__)


class Chat:
    """A single conversation with a streaming model and local tools.

    ``Chat`` owns the session, resets it after inactivity, runs each
    turn through a :class:`Runner` and writes the transcript to the
    history file after every tool round and when the turn ends, whether
    it succeeded or not. Turns must not overlap.

    Args:
        provider: Completion backend.
        model: Model identifier sent with each request.
        system_prompt: Content of the leading system message.
        registry: Tools the model may call.
        tools_enabled: Advertise ``registry`` to the model.
        history: Where transcripts are written; ``None`` disables it.
        policy: Inactivity policy; ``None`` never resets.
        runner: Turn driver, mainly to set ``max_rounds``.
    """

    def __init__(
        self,
        provider: ModelProvider,
        model: str,
        system_prompt: str,
        registry: ToolRegistry | None = None,
        tools_enabled: bool = True,
        history: HistoryWriter | None = None,
        policy: InactivityPolicy | None = None,
        runner: Runner | None = None,
    ):
        self.provider = provider
        self.model = model
        self.registry = registry if registry is not None else ToolRegistry()
        self.tools_enabled = tools_enabled
        self.history = history
        self.policy = policy
        self.runner = runner or Runner()
        self.session = Session(
            session_id=str(uuid.uuid4()), system_prompt=system_prompt,
        )

    @classmethod
    def from_config(
        cls, config: ChatConfig, registry: ToolRegistry | None = None,
        provider: ModelProvider | None = None,
    ) -> "Chat":
        if provider is None:
            provider = LMStudioProvider(
                base_url=config.base_url,
                api_key=config.api_key,
                max_retries=config.max_retries,
                timeout=config.timeout,
            )
        return cls(
            provider=provider,
            model=config.model,
            system_prompt=config.system_prompt,
            registry=registry,
            tools_enabled=config.enable_tools,
            history=HistoryWriter(config.history_dir, config.history_prefix),
            policy=InactivityPolicy(config.session_timeout),
            runner=Runner(max_rounds=config.max_rounds),
        )

    def reset(self) -> None:
        self.session = self.session.reset()
        logger.info(f"Chat history reset for session {self.session.session_id}")

    def persist(self) -> None:
        """Write the transcript. A failed write is logged, never raised."""
        if self.history is None:
            return
        try:
            self.history.save(self.session)
        except OSError as e:
            logger.error(f"Error saving chat history to {self.history.path}: {e}")

    async def stream(self, messages: Iterable[Message]) -> AsyncIterator[StreamEvent]:
        """Run one turn, yielding its events. The last one is ``TurnEnded``."""
        if self.policy is not None:
            if self.policy.should_reset():
                self.reset()
            self.policy.touch()

        self.session.append(*messages)
        persisted = False
        try:
            async for event in self.runner.iter(
                self.provider, self.model, self.session, self.registry,
                tools_enabled=self.tools_enabled,
                on_round_end=lambda _session: self.persist(),
            ):
                if isinstance(event, TurnEnded):
                    self.persist()
                    persisted = True
                yield event
        finally:
            if not persisted:
                self.persist()

    async def send(self, messages: Iterable[Message]) -> TurnEnded:
        """Run one turn to completion and return its ``TurnEnded``."""
        result: TurnEnded | None = None
        async for event in self.stream(messages):
            if isinstance(event, TurnEnded):
                result = event
        if result is None:
            raise RuntimeError("stream() ended without emitting TurnEnded")
        return result

    async def chat_with_llm_stream(
        self,
        messages: Iterable[Message],
        partial_callback: Callable[[str], None],
        end_callback: Callable[[], None],
        partial_thinking_callback: Callable[[str], None] | None = None,
        invoke_function_callback: Callable[..., None] | None = None,
    ) -> None:
        """Callback flavour of :meth:`stream`.

        ``invoke_function_callback(name)`` fires before a tool runs and
        ``invoke_function_callback(name, result)`` after it succeeds.
        ``end_callback`` fires once, after the final round.
        """
        async for event in self.stream(messages):
            if isinstance(event, TextDelta):
                partial_callback(event.content)
            elif isinstance(event, ThinkingDelta):
                if partial_thinking_callback is not None:
                    partial_thinking_callback(event.content)
            elif isinstance(event, ToolInvoked):
                if invoke_function_callback is not None:
                    invoke_function_callback(event.name)
            elif isinstance(event, ToolCompleted):
                if invoke_function_callback is not None and not event.is_error:
                    invoke_function_callback(event.name, event.result)
            elif isinstance(event, TurnEnded):
                end_callback()
