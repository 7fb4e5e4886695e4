import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Callable

from toolstream.events import StreamEvent, ToolCompleted, ToolInvoked
from toolstream.instrumentation import record_error, tool_span
from toolstream.streaming import ToolCall
from toolstream.tools import ToolRegistry

logger = logging.getLogger(__name__)

Notify = Callable[[StreamEvent], None]


@dataclass
class ToolResult:
    """Outcome of one tool call, paired back to the call by id."""

    call_id: str
    name: str
    result: str
    is_error: bool = False


def parse_arguments(name: str, arguments: str) -> dict:
    """Decode a call's JSON arguments, falling back to ``{}``."""
    if not arguments or not arguments.strip():
        return {}
    try:
        params = json.loads(arguments)
    except json.JSONDecodeError as e:
        logger.warning(f"Error parsing arguments for function {name}: {arguments!r} ({e})")
        return {}
    if not isinstance(params, dict):
        logger.warning(f"Arguments for function {name} are not an object: {arguments!r}")
        return {}
    return params


class ToolDispatcher:
    """Runs the tool calls of one round against a :class:`ToolRegistry`.

    Every failure mode (unknown name, bad arguments, a raising tool)
    becomes a result string for the model; ``dispatch`` itself does not
    raise for individual calls.
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def dispatch(
        self, calls: list[ToolCall], notify: Notify | None = None,
    ) -> list[ToolResult]:
        """Run all calls concurrently and return one result per call."""
        if not calls:
            return []
        results = await asyncio.gather(
            *(self._dispatch_one(call, notify) for call in calls)
        )
        return list(results)

    async def _dispatch_one(self, call: ToolCall, notify: Notify | None) -> ToolResult:
        params = parse_arguments(call.name, call.arguments)

        tool_obj = self.registry.get(call.name)
        if tool_obj is None:
            logger.warning(f"Function {call.name} not found")
            return ToolResult(
                call_id=call.id, name=call.name,
                result=f"Function {call.name} not found", is_error=True,
            )

        if notify is not None:
            notify(ToolInvoked(name=call.name, call_id=call.id))
        logger.info(f"Calling {call.name} with {params}")

        async with tool_span(call.name, call.id) as span:
            try:
                outcome = await tool_obj(**params)
            except Exception as e:
                logger.error(f"Error executing function {call.name}: {e}")
                record_error(span, e)
                result = ToolResult(
                    call_id=call.id, name=call.name,
                    result=f"Error executing function {call.name}: {e}",
                    is_error=True,
                )
            else:
                result = ToolResult(
                    call_id=call.id, name=call.name, result=outcome.output,
                )

        if notify is not None:
            notify(ToolCompleted(
                name=call.name, call_id=call.id,
                result=result.result, is_error=result.is_error,
            ))
        return result
