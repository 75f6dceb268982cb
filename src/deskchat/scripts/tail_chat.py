"""Follow one conversation from the terminal using the polling sync engine.

Example:
    python -m deskchat.scripts.tail_chat --token $TOKEN --actor-id 2 --project 1
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from deskchat.core.settings import settings
from deskchat.services.store_client import StoreClient, load_store_config
from deskchat.sync import (
    ChatSession,
    ConversationTarget,
    DirectTarget,
    GroupTarget,
    Message,
    UnreadCounterChannel,
)


def format_message(message: Message, actor_id: int) -> str:
    """Render one message as a single terminal line."""
    who = "me" if message.sender_id == actor_id else (
        message.sender.name if message.sender else f"user {message.sender_id}"
    )
    stamp = message.created_at.strftime("%H:%M:%S")
    return f"[{message.id:>6}] {stamp} {who}: {message.body}"


class _Printer:
    """Prints only messages not shown before."""

    def __init__(self, actor_id: int) -> None:
        self.actor_id = actor_id
        self._printed: set[int] = set()

    def __call__(self, messages: tuple[Message, ...]) -> None:
        for message in messages:
            if message.id not in self._printed:
                self._printed.add(message.id)
                print(format_message(message, self.actor_id), flush=True)


async def run(args: argparse.Namespace) -> None:
    target: ConversationTarget = (
        GroupTarget(args.project) if args.project is not None else DirectTarget(args.user)
    )
    async with StoreClient(load_store_config(api_token=args.token)) as store:
        session = ChatSession(store, args.actor_id, poll_interval=args.interval)
        unread = UnreadCounterChannel(store)

        conversations = await session.enter()
        for conversation in conversations:
            badge = f" ({conversation.unread_count})" if conversation.unread_count else ""
            print(f"* {conversation.title}{badge}: {conversation.last_message.body}")

        session.messages.subscribe(_Printer(args.actor_id), replay=False)
        unread.count.subscribe(lambda count: print(f"-- unread notifications: {count}"))

        session.open(target)
        unread.start()
        try:
            if args.send:
                await session.send(args.send)
            if args.duration > 0:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            await session.aclose()
            await unread.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Tail a deskchat conversation")
    parser.add_argument("--token", default=settings.store_api_token, help="Bearer token")
    parser.add_argument("--actor-id", type=int, required=True, help="Id of the token's user")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--user", type=int, help="Counterpart user id for a direct chat")
    group.add_argument("--project", type=int, help="Project id for a team chat")
    parser.add_argument("--send", help="Send this message after opening the conversation")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.chat_poll_interval_seconds,
        help="Seconds between fetches",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=0.0,
        help="Stop after this many seconds (0 runs until interrupted)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
