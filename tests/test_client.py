#!/usr/bin/env python3
"""
Unit tests for the terminal client's event rendering.
"""

import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from main_client import format_event


class TestFormatEvent(unittest.TestCase):
    """Test cases for format_event."""

    def test_chat_and_action(self):
        self.assertEqual(
            format_event({'type': 'chat-message', 'username': 'alice', 'message': 'hi', 'timestamp': '10:00'}),
            '[10:00] <alice> hi'
        )
        self.assertEqual(
            format_event({'type': 'action-message', 'username': 'alice', 'action': 'waves', 'timestamp': '10:01'}),
            '[10:01] * alice waves'
        )

    def test_history_lists_every_row(self):
        text = format_event({
            'type': 'message-history', 'room': 'general', 'count': 2,
            'messages': [
                {'timestamp': '09:00', 'username': 'bob', 'message': 'one'},
                {'timestamp': '09:01', 'username': 'bob', 'message': 'two'},
            ]
        })
        self.assertEqual(text.splitlines()[1:], ['[09:00] <bob> one', '[09:01] <bob> two'])

    def test_typing_is_silent(self):
        self.assertEqual(format_event({'type': 'user-typing', 'username': 'bob'}), '')

    def test_fallbacks(self):
        self.assertEqual(format_event({'type': 'login-error', 'message': 'Invalid password'}),
                         '*** login-error: Invalid password')
        self.assertEqual(format_event({'type': 'clear-chat'}), '*** clear-chat')


if __name__ == '__main__':
    unittest.main()
