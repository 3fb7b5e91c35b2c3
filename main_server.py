#!/usr/bin/env python3
"""
Chat Relay Server - Main Entry Point

Unified entry point for the relay server:
- Presence tracking (join / leave notices)
- Chat broadcast (text and file messages)
- Heartbeat replies
- Idle reset after global inactivity

Usage:
    python main_server.py

Optional arguments:
    --host HOST                 Bind address (default: 0.0.0.0)
    --port PORT                 WebSocket port (default: 3001)
    --inactivity-timeout SECS   Idle time before the chat is reset (default: 300)
    --check-interval SECS       Idle check period (default: 60)
    --logs-dir DIR              Append presence events to DIR/presence.log
    --log-level LEVEL           DEBUG, INFO, WARNING or ERROR (default: INFO)
"""

if __name__ == "__main__":
    import asyncio
    import argparse
    import logging

    from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, INACTIVITY_TIMEOUT, IDLE_CHECK_INTERVAL
    from server.main_server import ChatRelayServer
    from server.utils.config import ServerConfig
    from server.utils.logger import logger

    # Parse command line arguments
    parser = argparse.ArgumentParser(description='Chat Relay Server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                       help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                       help=f'WebSocket port (default: {DEFAULT_PORT})')
    parser.add_argument('--inactivity-timeout', type=float, default=INACTIVITY_TIMEOUT,
                       help=f'Seconds without activity before the chat is reset (default: {INACTIVITY_TIMEOUT})')
    parser.add_argument('--check-interval', type=float, default=IDLE_CHECK_INTERVAL,
                       help=f'Seconds between idle checks (default: {IDLE_CHECK_INTERVAL})')
    parser.add_argument('--logs-dir', type=str, default=None,
                       help='Directory for the presence log (default: console only)')
    parser.add_argument('--log-level', type=str, default='INFO',
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                       help='Log level (default: INFO)')

    args = parser.parse_args()

    logger.configure(getattr(logging, args.log_level), args.logs_dir)

    # Create and start the server
    try:
        config = ServerConfig(
            host=args.host,
            port=args.port,
            inactivity_timeout=args.inactivity_timeout,
            idle_check_interval=args.check_interval,
            logs_dir=args.logs_dir
        )
        server = ChatRelayServer(config)
        logger.info(f"Server binding to {config.host}:{config.port}")
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except Exception as e:
        import traceback
        logger.error(f"Server failed to start: {e}")
        traceback.print_exc()
