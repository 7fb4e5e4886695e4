import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Callable

from toolstream.dispatcher import ToolDispatcher, ToolResult
from toolstream.events import (
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    TurnEnded,
)
from toolstream.instrumentation import completion_span, record_error, turn_span
from toolstream.message import Message, MessageRole
from toolstream.provider import ModelProvider
from toolstream.session import Session
from toolstream.streaming import ToolCall, ToolCallAccumulator
from toolstream.tools import ToolRegistry

logger = logging.getLogger(__name__)


class MaxRoundsExceeded(RuntimeError):
    """The model kept requesting tools past the runner's round limit."""


class Runner:
    """Drives one turn: stream, dispatch tools, repeat until plain text.

    The runner appends the assistant messages, tool-call requests and
    tool results to ``session.transcript`` as it goes. Failures while
    streaming end the turn with an ``"Error: ..."`` text event instead
    of raising.

    ``run()`` drains ``iter()``.  ``iter()`` is the streaming entry point.

    Args:
        max_rounds: Maximum number of completion requests in one turn.
            Hitting it ends the turn with :class:`MaxRoundsExceeded`.
    """

    def __init__(self, max_rounds: int = 25):
        self.max_rounds = max_rounds

    async def run(
        self, provider: ModelProvider, model: str, session: Session,
        registry: ToolRegistry | None = None, tools_enabled: bool = True,
        on_round_end: Callable[[Session], None] | None = None,
    ) -> TurnEnded:
        """Run the turn to completion and return its final event."""
        result: TurnEnded | None = None
        async for event in self.iter(
            provider, model, session, registry, tools_enabled, on_round_end,
        ):
            if isinstance(event, TurnEnded):
                result = event
        if result is None:
            raise RuntimeError("iter() ended without emitting TurnEnded")
        return result

    async def iter(
        self, provider: ModelProvider, model: str, session: Session,
        registry: ToolRegistry | None = None, tools_enabled: bool = True,
        on_round_end: Callable[[Session], None] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run the turn, yielding events as execution proceeds."""
        registry = registry if registry is not None else ToolRegistry()
        dispatcher = ToolDispatcher(registry)
        tool_schemas = registry.schemas() if tools_enabled else []
        rounds = 0

        async with turn_span(session.session_id, model) as span:
            try:
                while True:
                    if rounds >= self.max_rounds:
                        raise MaxRoundsExceeded(
                            f"Maximum tool rounds ({self.max_rounds}) reached"
                        )
                    rounds += 1
                    logger.debug(f"Starting round {rounds} with {len(session.transcript)} messages")

                    acc = ToolCallAccumulator()
                    full_content = ""
                    async with completion_span(provider.system, model, rounds):
                        async for chunk in provider.stream_complete(
                            model=model, messages=session.wire_messages(),
                            tools=tool_schemas or None,
                        ):
                            if chunk.content_delta:
                                full_content += chunk.content_delta
                                yield TextDelta(content=chunk.content_delta)
                            if chunk.thinking_delta:
                                yield ThinkingDelta(content=chunk.thinking_delta)
                            for frag in chunk.tool_call_fragments or []:
                                acc.feed(frag)

                    calls = acc.finalize()

                    # No tool calls: final text response
                    if not calls:
                        msg = Message(role=MessageRole.ASSISTANT, content=full_content)
                        session.append(msg)
                        yield TurnEnded(message=msg, rounds=rounds)
                        return

                    session.append(Message(
                        role=MessageRole.ASSISTANT, content=full_content,
                        tool_calls=calls,
                    ))
                    results: list[ToolResult] = []
                    async for event in self._dispatch(dispatcher, calls, results):
                        yield event

                    # results come back in call order
                    session.append(*(
                        Message(
                            role=MessageRole.TOOL,
                            content=result.result,
                            tool_call_id=call.id,
                        )
                        for call, result in zip(calls, results)
                    ))
                    if on_round_end is not None:
                        on_round_end(session)
            except Exception as e:
                if isinstance(e, MaxRoundsExceeded):
                    logger.error(f"Stopping turn {session.session_id}: {e}")
                else:
                    logger.error(f"Error communicating with model endpoint: {e}")
                record_error(span, e)
                yield TextDelta(content=f"Error: {e}")
                yield TurnEnded(rounds=rounds, error=str(e))

    async def _dispatch(
        self, dispatcher: ToolDispatcher, calls: list[ToolCall],
        results: list[ToolResult],
    ) -> AsyncIterator[StreamEvent]:
        """Dispatch one round, yielding tool events while calls run."""
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue()
        task = asyncio.ensure_future(
            dispatcher.dispatch(calls, notify=queue.put_nowait)
        )
        getter = None
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait(
                    {task, getter}, return_when=asyncio.FIRST_COMPLETED,
                )
                if getter in done:
                    yield getter.result()
                    continue
                getter.cancel()
                break
            while not queue.empty():
                yield queue.get_nowait()
            results.extend(task.result())
        finally:
            if getter is not None and not getter.done():
                getter.cancel()
            if not task.done():
                task.cancel()
