#!/usr/bin/env python3
"""
RetroChat Terminal Client - Main Entry Point

Connects to a relay server, logs in and relays stdin lines as chat messages.
Slash commands (/help, /join random, /msg bob hi, ...) are typed as-is.

Usage:
    python main_client.py [--username NAME --password PASS | --guest]
"""

import argparse
import asyncio
import sys

from client.chat.chat_client import ChatClient
from client.utils.config import ClientConfig
from common.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_COLOR, EventTypes


def format_event(message: dict) -> str:
    """Render a server event as one line of terminal output."""
    kind = message.get('type')
    if kind == EventTypes.CHAT_MESSAGE:
        return f"[{message.get('timestamp')}] <{message.get('username')}> {message.get('message')}"
    if kind == EventTypes.ACTION_MESSAGE:
        return f"[{message.get('timestamp')}] * {message.get('username')} {message.get('action')}"
    if kind == EventTypes.IMAGE_KEYWORD:
        return f"[{message.get('timestamp')}] <{message.get('username')}> !{message.get('keyword')} {message.get('imageUrl')}"
    if kind == EventTypes.IMAGE_MESSAGE:
        return f"[{message.get('timestamp')}] <{message.get('username')}> [Image]"
    if kind == EventTypes.SYSTEM_MESSAGE:
        return f"[{message.get('timestamp')}] *** {message.get('text')}"
    if kind == EventTypes.PRIVATE_MESSAGE:
        return f"[{message.get('timestamp')}] (PM from {message.get('from')}) {message.get('message')}"
    if kind == EventTypes.PRIVATE_MESSAGE_SENT:
        return f"[{message.get('timestamp')}] (PM to {message.get('to')}) {message.get('message')}"
    if kind == EventTypes.MESSAGE_HISTORY:
        lines = [f"--- #{message.get('room')} history ({message.get('count')} messages) ---"]
        for row in message.get('messages', []):
            lines.append(f"[{row.get('timestamp')}] <{row.get('username')}> {row.get('message')}")
        return '\n'.join(lines)
    if kind == EventTypes.USERS_UPDATE:
        return f"*** Users in #{message.get('room')}: {', '.join(message.get('users', []))}"
    if kind == EventTypes.ACHIEVEMENT_UNLOCKED:
        return f"*** Achievement unlocked: {message.get('title')} - {message.get('description')}"
    if kind == EventTypes.HELP_MESSAGE:
        return '\n'.join(message.get('commands', []))
    if kind == EventTypes.LOGIN_SUCCESS:
        return f"*** Logged in as {message.get('username')} in #{message.get('room')} ({message.get('topic')})"
    if kind in (EventTypes.USER_TYPING, EventTypes.USER_STOP_TYPING):
        return ''
    if 'message' in message:
        return f"*** {kind}: {message['message']}"
    return f"*** {kind}"


async def print_event(message: dict):
    line = format_event(message)
    if line:
        print(line, flush=True)


async def run(config: ClientConfig):
    client = ChatClient(config.host, config.port)
    try:
        await client.connect()
    except OSError as e:
        print(f"[ERROR] Could not connect to {config.host}:{config.port}: {e}")
        return 1

    client.set_message_handler(print_event)
    listener_task = asyncio.create_task(client.listen())

    if config.guest:
        await client.login_as_guest(config.color)
    else:
        await client.login(config.username, config.password, config.color)

    loop = asyncio.get_running_loop()
    try:
        while not listener_task.done():
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if line.strip():
                await client.send_chat(line.strip())
    finally:
        if not listener_task.done():
            await client.logout()
        listener_task.cancel()
        try:
            await listener_task
        except (asyncio.CancelledError, ConnectionError):
            pass
        await client.close()
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description='RetroChat Terminal Client')
    parser.add_argument('--server-ip', type=str, default=DEFAULT_HOST,
                        help=f'Server address (default: {DEFAULT_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Server port (default: {DEFAULT_PORT})')
    parser.add_argument('--username', type=str, default=None, help='Account name')
    parser.add_argument('--password', type=str, default=None, help='Account password')
    parser.add_argument('--color', type=str, default=DEFAULT_COLOR, help='Display color (#RRGGBB)')
    parser.add_argument('--guest', action='store_true', help='Log in as a guest')
    args = parser.parse_args(argv)

    config = ClientConfig(args.server_ip, args.port, args.username, args.password, args.color, args.guest)
    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        print("\n[INFO] Client terminated")
        return 0


if __name__ == "__main__":
    sys.exit(main())
