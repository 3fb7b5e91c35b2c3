#!/usr/bin/env python3
"""
Chat Relay Client - Interactive terminal client

Joins the room, prints incoming messages and system notices, and sends
typed lines as text messages.
"""

import asyncio
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from client.chat.chat_client import ChatClient
from client.utils.config import ClientConfig
from client.utils.logger import logger


class InteractiveClient:
    """Terminal front end around ChatClient."""

    def __init__(self, host: str = 'localhost', port: int = 3001, display_name: str = None,
                 avatar_ref: str = None, rejoin_on_reset: bool = False):
        self.config = ClientConfig(host, port, display_name, avatar_ref)
        self.chat_client = ChatClient(self.config, auto_rejoin=rejoin_on_reset)

    async def handle_command(self, line: str) -> bool:
        """Handle one line of user input. Returns False to quit."""
        if line == '/quit':
            return False
        if line.startswith('/file '):
            await self.chat_client.send_file(line[len('/file '):].strip())
        elif line.startswith('/'):
            logger.warning(f"Unknown command: {line.split()[0]}")
        else:
            await self.chat_client.send_text(line)
        return True

    async def interactive_mode(self):
        """Run client with interactive chat input."""
        if not await self.chat_client.connect():
            return

        await self.chat_client.join()

        # Start heartbeat and listener tasks
        heartbeat_task = asyncio.create_task(self.chat_client.heartbeat_loop())
        listener_task = asyncio.create_task(self.chat_client.listen())

        logger.show_interactive_mode_info()

        try:
            while self.chat_client.running:
                user_input = await asyncio.get_running_loop().run_in_executor(
                    None, sys.stdin.readline
                )
                if not user_input:
                    break
                if user_input.strip() and not await self.handle_command(user_input.strip()):
                    break
        finally:
            await self.chat_client.close()

            for task in (listener_task, heartbeat_task):
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            logger.info("[INFO] Disconnected from server")


async def main():
    """Main entry point."""
    if len(sys.argv) > 1:
        display_name = sys.argv[1]
    else:
        display_name = input("Enter display name: ").strip() or "anonymous"

    client = InteractiveClient(display_name=display_name)

    try:
        await client.interactive_mode()
    except Exception as e:
        logger.log_error("client", e)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n[INFO] Client terminated")
