#!/usr/bin/env python3
"""
RetroChat Relay Server - Main Entry Point

Multi-room chat relay with registered accounts, guest sessions, slash
commands and achievements, backed by a SQLite database.

Usage:
    python main_server.py

Optional arguments:
    --host HOST               Bind address (default: 0.0.0.0)
    --port PORT               TCP port (default: $PORT or 3000)
    --db PATH                 SQLite database (default: $DATABASE_PATH or ./retrochat.db)
    --banned-terms-file FILE  One banned term per line
    --log-level LEVEL         DEBUG, INFO, WARNING or ERROR (default: INFO)
"""

import argparse
import asyncio
import logging
import os
import sys

from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, DEFAULT_DB_PATH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='RetroChat Relay Server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                        help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=int(os.environ.get('PORT', DEFAULT_PORT)),
                        help=f'TCP port (default: $PORT or {DEFAULT_PORT})')
    parser.add_argument('--db', type=str, default=os.environ.get('DATABASE_PATH', DEFAULT_DB_PATH),
                        help=f'SQLite database path (default: $DATABASE_PATH or {DEFAULT_DB_PATH})')
    parser.add_argument('--banned-terms-file', type=str, default=None,
                        help='File with one banned term per line')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Console log level (default: INFO)')
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    from server.errors import StoreError
    from server.main_server import ChatRelayServer
    from server.storage.chat_store import ChatStore
    from server.utils.config import ServerConfig
    from server.utils.logger import logger

    logger.set_level(getattr(logging, args.log_level))

    try:
        config = ServerConfig(host=args.host, port=args.port, db_path=args.db,
                              banned_terms_file=args.banned_terms_file)
    except OSError as e:
        logger.error(f"[FATAL] Could not read banned terms file: {e}")
        return 1

    store = ChatStore(config.db_path, config.history_limit)
    try:
        store.initialize()
    except StoreError as e:
        logger.error(f"[FATAL] Server startup failed: {e}")
        return 1

    server = ChatRelayServer(config, store)
    logger.info(f"RetroChat relay | port {config.port} | database {config.db_path}")
    logger.debug(f"Chat settings: {config.get_chat_settings()}")
    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("[SHUTDOWN] Server shutting down...")
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
