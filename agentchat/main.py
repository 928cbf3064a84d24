"""CLI entry point for the Agent Chat gateway.

A terminal chat that drives the same pipeline as ``POST /api/chat``.
Useful for trying tools and attachments without a frontend.

Usage:
    python -m agentchat.main                                  # agent path
    python -m agentchat.main --model claude-2                 # direct completion
    python -m agentchat.main --tool fetchDestinationGuide --file notes.txt
    python -m agentchat.main --debug                          # show API calls
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import logging
from pathlib import Path

from agentchat.api.schemas import ChatMessage, FileAttachment, ToolSelection
from agentchat.pipeline import ModelBackend, answer_with_agent, resolve_backend
from agentchat.prompts import build_prompt
from agentchat.services.completion_client import (
    close_completion_client,
    get_completion_client,
    iter_completion_text,
)

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("agentchat").setLevel(logging.DEBUG if debug else logging.INFO)


def load_attachments(paths: list[str]) -> list[FileAttachment]:
    """Read local files and encode them the way the frontend does."""
    return [
        FileAttachment(base64=base64.b64encode(Path(p).read_bytes()).decode("ascii"))
        for p in paths
    ]


async def _reply(
    backend: ModelBackend,
    history: list[ChatMessage],
    tools: list[ToolSelection],
    files: list[FileAttachment],
) -> str:
    """Print the assistant's reply as it arrives and return the full text."""
    if backend is ModelBackend.COMPLETION:
        stream = await get_completion_client().open_stream(build_prompt(history))
        parts = []
        async for text in iter_completion_text(stream):
            print(text, end="", flush=True)
            parts.append(text)
        print("\n")
        return "".join(parts)

    answer = await answer_with_agent(history, tools, files)
    print(f"{answer}\n")
    return answer


async def chat_loop(model: str, tool_names: list[str], file_paths: list[str]) -> None:
    """Run the interactive loop; attachments are sent with every turn."""
    backend = resolve_backend(model)
    tools = [ToolSelection(name=name, active=True) for name in tool_names]
    files = load_attachments(file_paths)
    history: list[ChatMessage] = []

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, "You: ")).strip()
            except (KeyboardInterrupt, EOFError):
                print("\n\nGoodbye!")
                break

            if not user_input:
                continue
            if user_input.lower() in ("exit", "quit", "q"):
                print("\nGoodbye!")
                break
            if user_input.lower() == "new":
                history.clear()
                print("\n>> Conversation cleared.\n")
                continue

            history.append(ChatMessage(role="user", content=user_input))
            print("\nAssistant: ", end="", flush=True)
            try:
                reply = await _reply(backend, history, tools, files)
            except Exception as e:
                logger.exception("Error processing message")
                print(f"\nSomething went wrong: {e}\n")
                history.pop()
                continue
            history.append(ChatMessage(role="assistant", content=reply))
    finally:
        await close_completion_client()


def main():
    """Parse arguments and start the chat loop."""
    parser = argparse.ArgumentParser(description="Agent Chat CLI")
    parser.add_argument(
        "--model", default="gpt",
        help="'claude-2' for direct completion, anything else for the agent",
    )
    parser.add_argument(
        "--tool", action="append", default=[], dest="tools",
        help="Enable an optional tool by name (repeatable)",
    )
    parser.add_argument(
        "--file", action="append", default=[], dest="files",
        help="Attach a UTF-8 text file to every question (repeatable)",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args()

    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  Agent Chat - CLI")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' to clear the conversation.")
    print("=" * 60 + "\n")

    asyncio.run(chat_loop(args.model, args.tools, args.files))


if __name__ == "__main__":
    main()
