"""Follow a war room from the terminal: log in, poll the snapshot, print new activity."""

import argparse
import asyncio
import getpass
import logging
import os
import sys

# Add project root to path
sys.path.append(os.getcwd())

from warroom.client import RoomApiClient, RoomView
from warroom.errors import RoomError, TransientFetchError
from warroom.utils.logging_config import setup_logging

logger = logging.getLogger("warroom.watch")


class Printer:
    def __init__(self):
        self.seen_messages = set()
        self.last_status = None

    def __call__(self, view: RoomView) -> None:
        snapshot = view.snapshot
        if snapshot is None:
            return
        status = (snapshot.status.value, snapshot.phase.value)
        if status != self.last_status:
            print(f"[{snapshot.room_id}] {snapshot.title}: {status[1]}")
            self.last_status = status
        for message in snapshot.messages:
            if message.id in self.seen_messages:
                continue
            self.seen_messages.add(message.id)
            stamp = message.created_at.strftime("%H:%M")
            print(f"{stamp} {message.author.display_name} ({message.type.value}): {message.text}")
        if view.notice is not None:
            print(f"! {view.notice.message}")


async def watch(args) -> int:
    password = args.password or getpass.getpass(f"Password for {args.login}: ")
    async with RoomApiClient(base_url=args.url) as api:
        try:
            await api.login(args.login, password)
        except (RoomError, TransientFetchError) as e:
            print(f"Login failed: {e}")
            return 1

        view = RoomView(api, args.room_id, interval=args.interval)
        printer = Printer()
        await view.open()
        try:
            while True:
                printer(view)
                if view.is_closed:
                    summary = view.snapshot.summary or "no summary"
                    print(f"Session ended: {summary}")
                    return 0
                await asyncio.sleep(view.poller.interval)
        finally:
            await view.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Watch a war room snapshot.")
    parser.add_argument("room_id")
    parser.add_argument("--url", default="http://127.0.0.1:8000")
    parser.add_argument("--login", required=True)
    parser.add_argument("--password")
    parser.add_argument("--interval", type=float, default=None)
    args = parser.parse_args()

    setup_logging()
    try:
        return asyncio.run(watch(args))
    except KeyboardInterrupt:
        logger.info("Stopped watching %s", args.room_id)
        return 0


if __name__ == "__main__":
    sys.exit(main())
