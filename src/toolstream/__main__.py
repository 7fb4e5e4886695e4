"""Interactive terminal chat.

Usage:
    Put LMSTUDIO_* settings in .env (see ``toolstream.config``), then:
    python -m toolstream --enable-tools
"""

import argparse
import asyncio
import json
import logging
from datetime import datetime, timezone

from toolstream.chat import Chat
from toolstream.config import ChatConfig
from toolstream.events import TextDelta, ThinkingDelta, ToolCompleted, ToolInvoked
from toolstream.message import Message, MessageRole
from toolstream.tools import ToolRegistry, tool


def configure_logging(log_file: str = "toolstream.log", level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s:%(name)s:%(levelname)s:%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


@tool
def get_current_time(zone: str = "local"):
    """Return the current date and time.

    Args:
        zone: Only "local" and "utc" are understood.
    """
    now = datetime.now(timezone.utc) if zone.lower() == "utc" else datetime.now()
    return now.isoformat(timespec="seconds")


@tool
def add_numbers(a: float, b: float):
    """Add two numbers.

    Args:
        a: First addend.
        b: Second addend.
    """
    return json.dumps({"sum": a + b})


def default_registry() -> ToolRegistry:
    return ToolRegistry([get_current_time, add_numbers])


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="toolstream",
        description="Chat with an OpenAI-compatible model, with tool calls.",
    )
    parser.add_argument("--model", help="model identifier (LMSTUDIO_MODEL)")
    parser.add_argument("--base-url", help="endpoint base URL (LMSTUDIO_BASE_URL)")
    parser.add_argument("--history-dir", help="folder for history files (CHAT_HISTORY_DIR)")
    parser.add_argument(
        "--enable-tools", action="store_true", default=None,
        help="advertise the demo tools to the model",
    )
    parser.add_argument("--log-file", default="toolstream.log")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


async def run_chat_loop(chat: Chat) -> None:
    print("toolstream chat. /reset clears the conversation, Ctrl-D exits.\n")
    while True:
        try:
            user_input = input("You: ")
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if not user_input.strip():
            continue
        if user_input.strip() == "/reset":
            chat.reset()
            print("(conversation cleared)\n")
            continue

        print("Assistant: ", end="", flush=True)
        async for event in chat.stream(
            [Message(role=MessageRole.USER, content=user_input)]
        ):
            if isinstance(event, TextDelta):
                print(event.content, end="", flush=True)
            elif isinstance(event, ThinkingDelta):
                continue
            elif isinstance(event, ToolInvoked):
                print(f"\n[calling {event.name}]", flush=True)
            elif isinstance(event, ToolCompleted):
                print(f"[{event.name} -> {event.result}]", flush=True)
        print("\n")


def main(argv=None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)
    config = ChatConfig.from_env(
        model=args.model,
        base_url=args.base_url,
        history_dir=args.history_dir,
        enable_tools=args.enable_tools,
    )
    chat = Chat.from_config(config, registry=default_registry())
    asyncio.run(run_chat_loop(chat))


if __name__ == "__main__":
    main()
