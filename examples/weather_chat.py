"""Tool-calling example: a weather assistant on LM Studio.

Demonstrates:
- Defining async tools with @tool
- Building a Chat from environment configuration
- The callback interface (partial text, tool notifications, end of turn)

Usage:
    Load a tool-capable model in LM Studio, start its server, then:
    LMSTUDIO_ENABLE_TOOLS=true uv run examples/weather_chat.py
"""

import asyncio
import random

from toolstream.chat import Chat
from toolstream.config import ChatConfig
from toolstream.message import Message, MessageRole
from toolstream.tools import ToolRegistry, tool


@tool
async def get_weather(city: str):
    """Current temperature for a city.

    Args:
        city: City name, e.g. "Paris".
    """
    await asyncio.sleep(0.2)
    return f"{random.randint(-5, 35)}C in {city}"


@tool
async def get_forecast(city: str, days: int = 3):
    """Daily forecast for the next few days.

    Args:
        city: City name.
        days: Number of days, at most 7.
    """
    days = min(days, 7)
    return [
        {"day": d + 1, "high": random.randint(10, 30), "low": random.randint(-5, 10)}
        for d in range(days)
    ]


def on_tool(name, result=None):
    if result is None:
        print(f"\n[calling {name}]")
    else:
        print(f"[{name} -> {result}]")


async def main():
    config = ChatConfig.from_env(
        system_prompt="You are a weather assistant. Use the tools for any weather question.",
    )
    chat = Chat.from_config(config, registry=ToolRegistry([get_weather, get_forecast]))

    print("Weather assistant\n")
    while True:
        try:
            user_input = input("You: ")
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        print("Assistant: ", end="", flush=True)
        await chat.chat_with_llm_stream(
            [Message(role=MessageRole.USER, content=user_input)],
            partial_callback=lambda text: print(text, end="", flush=True),
            end_callback=lambda: print("\n"),
            invoke_function_callback=on_tool,
        )


if __name__ == "__main__":
    asyncio.run(main())
