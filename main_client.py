#!/usr/bin/env python3
"""
Chat Relay Client - Main Entry Point

Terminal client that joins the relay room, prints the conversation and
sends typed lines.

Usage:
    python main_client.py [--name NAME] [--host HOST] [--port PORT] [--avatar REF] [--rejoin-on-reset]

Commands inside the client:
    /file <path>   Send a file (up to 10MB)
    /quit          Leave the conversation
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def run_cli_client(display_name: str = None, server_host: str = 'localhost', server_port: int = 3001,
                   avatar_ref: str = None, rejoin_on_reset: bool = False):
    """Run the CLI client."""
    import asyncio
    from client.main_client import InteractiveClient

    if not display_name:
        display_name = input("Enter display name: ").strip() or "anonymous"

    client = InteractiveClient(
        host=server_host,
        port=server_port,
        display_name=display_name,
        avatar_ref=avatar_ref,
        rejoin_on_reset=rejoin_on_reset
    )

    try:
        asyncio.run(client.interactive_mode())
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except Exception as e:
        from client.utils.logger import logger
        logger.log_error("client", e)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Chat Relay Client')
    parser.add_argument('--name', type=str, default=None,
                       help='Display name (default: asked on start)')
    parser.add_argument('--host', type=str, default='localhost',
                       help='Server address (default: localhost)')
    parser.add_argument('--port', type=int, default=3001,
                       help='Server port (default: 3001)')
    parser.add_argument('--avatar', type=str, default=None,
                       help='Avatar reference sent with your messages')
    parser.add_argument('--rejoin-on-reset', action='store_true',
                       help='Join again automatically after the server clears the chat')

    args = parser.parse_args()

    run_cli_client(args.name, args.host, args.port, args.avatar, args.rejoin_on_reset)


if __name__ == "__main__":
    main()
