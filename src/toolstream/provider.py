import logging
from collections.abc import AsyncIterator

from openai import AsyncOpenAI

from toolstream.streaming import StreamChunk, ToolCallFragment

logger = logging.getLogger(__name__)

LMSTUDIO_BASE_URL = "http://localhost:1234/v1"


class ModelProvider:
    """Source of streamed chat completions.

    Subclasses turn whatever their backend streams into
    :class:`StreamChunk` objects. ``system`` names the backend in
    traces.
    """

    system: str = "unknown"

    def stream_complete(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
    ) -> AsyncIterator[StreamChunk]:
        raise NotImplementedError


def _to_chunk(chunk) -> StreamChunk | None:
    """Normalise one OpenAI ``ChatCompletionChunk``."""
    if not chunk.choices:
        return None
    choice = chunk.choices[0]
    delta = choice.delta
    if delta is None:
        return StreamChunk(finish_reason=choice.finish_reason)

    fragments = [
        ToolCallFragment(
            index=tc.index,
            call_id=tc.id,
            name=tc.function.name if tc.function else None,
            arguments_delta=tc.function.arguments if tc.function else None,
        )
        for tc in (delta.tool_calls or [])
    ]
    return StreamChunk(
        content_delta=delta.content,
        thinking_delta=getattr(delta, "reasoning_content", None),
        tool_call_fragments=fragments or None,
        finish_reason=choice.finish_reason,
    )


class OpenAICompatibleProvider(ModelProvider):
    """Any server speaking the OpenAI chat-completions protocol.

    Args:
        base_url: Endpoint root, usually ending in ``/v1``.
        api_key: Credential sent as a bearer token.
        max_retries: Connection retries performed by the SDK client.
        timeout: Request timeout in seconds.
    """

    system = "openai_compatible"

    def __init__(
            self,
            base_url: str,
            api_key: str,
            max_retries: int = 2,
            timeout: float = 600.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = AsyncOpenAI(
            base_url=self.base_url,
            api_key=api_key,
            max_retries=max_retries,
            timeout=timeout,
        )

    async def stream_complete(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
    ) -> AsyncIterator[StreamChunk]:
        kwargs = dict(model=model, messages=messages, stream=True)
        if tools:
            kwargs["tools"] = tools
        logger.debug(f"Streaming {model} with {len(messages)} messages, {len(tools or [])} tools")
        stream = await self.client.chat.completions.create(**kwargs)
        async for raw in stream:
            chunk = _to_chunk(raw)
            if chunk is not None:
                yield chunk


class LMStudioProvider(OpenAICompatibleProvider):
    """LM Studio's local server. ``ChatConfig`` supplies the settings;
    the defaults match a stock LM Studio install."""

    system = "lmstudio"

    def __init__(
            self,
            base_url: str = LMSTUDIO_BASE_URL,
            api_key: str = "lm-studio",
            max_retries: int = 2,
            timeout: float = 600.0,
    ):
        super().__init__(
            base_url=base_url,
            api_key=api_key,
            max_retries=max_retries,
            timeout=timeout,
        )
