#!/usr/bin/env python3
"""
Unit tests for the presence registry, the room directory and the content filter.
"""

import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.constants import DEFAULT_COLOR, DEFAULT_ROOM, GUEST_PREFIX, GUEST_SUFFIX_MAX
from server.chat.content_filter import ContentFilter, normalize, sanitize_input
from server.errors import UnknownRoomError, ValidationError
from server.presence.registry import PresenceRegistry, make_guest_name
from server.rooms.directory import RoomDirectory


class TestPresenceRegistry(unittest.TestCase):
    """Test cases for session lifecycle."""

    def setUp(self):
        self.registry = PresenceRegistry()

    def test_register_defaults(self):
        session = self.registry.register(1)

        self.assertIsNone(session.username)
        self.assertFalse(session.logged_in)
        self.assertEqual(session.room, DEFAULT_ROOM)
        self.assertEqual(session.status, 'Online')
        self.assertEqual(session.color, DEFAULT_COLOR)
        self.assertFalse(session.is_guest)
        self.assertEqual(session.rooms_visited, {DEFAULT_ROOM})
        self.assertEqual(session.message_count, 0)

    def test_complete_login_sanitizes_name(self):
        self.registry.register(1)
        session = self.registry.complete_login(1, '  <alice>  ', '#00ff00', False)

        self.assertEqual(session.username, 'alice')
        self.assertEqual(session.color, '#00ff00')
        self.assertTrue(session.logged_in)

    def test_registered_name_needs_two_characters(self):
        session = self.registry.register(1)
        with self.assertRaises(ValidationError):
            self.registry.complete_login(1, 'a', '#00ff00', False)
        with self.assertRaises(ValidationError):
            self.registry.complete_login(1, '<>', '#00ff00', False)

        self.assertIsNone(session.username)
        self.assertEqual(session.color, DEFAULT_COLOR)

    def test_guest_name_may_be_short(self):
        self.registry.register(1)
        self.assertEqual(self.registry.complete_login(1, 'G', None, True).username, 'G')

    def test_find_by_username_only_sees_logged_in(self):
        self.registry.register(1)
        self.registry.register(2)
        self.registry.complete_login(2, 'bob', None, False)

        self.assertEqual(self.registry.find_by_username('bob'), 2)
        self.assertIsNone(self.registry.find_by_username('alice'))
        self.assertEqual(self.registry.online_count(), 1)
        self.assertEqual(len(self.registry), 2)

    def test_remove_returns_session_once(self):
        self.registry.register(1)
        self.registry.complete_login(1, 'alice', None, False)

        session = self.registry.remove(1)
        self.assertEqual(session.username, 'alice')
        self.assertIsNone(self.registry.remove(1))
        self.assertIsNone(self.registry.find_by_username('alice'))

    def test_reset_login_restores_fresh_session(self):
        session = self.registry.register(1)
        self.registry.complete_login(1, 'Guest7', '#00ff00', True)
        session.room = 'random'
        session.rooms_visited.add('random')

        self.registry.reset_login(1)

        self.assertFalse(session.logged_in)
        self.assertFalse(session.is_guest)
        self.assertEqual((session.room, session.color), (DEFAULT_ROOM, DEFAULT_COLOR))
        self.assertEqual(session.rooms_visited, {DEFAULT_ROOM})
        self.assertIsNone(self.registry.find_by_username('Guest7'))

    def test_guest_names(self):
        for _ in range(50):
            name = make_guest_name()
            self.assertTrue(name.startswith(GUEST_PREFIX))
            suffix = int(name[len(GUEST_PREFIX):])
            self.assertTrue(0 <= suffix <= GUEST_SUFFIX_MAX)


class TestRoomDirectory(unittest.TestCase):
    """Test cases for room membership."""

    def setUp(self):
        self.rooms = RoomDirectory()

    def test_fixed_rooms_and_topics(self):
        self.assertEqual(self.rooms.names(), ['general', 'random', 'images', 'windows'])
        self.assertEqual(self.rooms.topic('general'), 'General Discussion')
        self.assertIn('random', self.rooms)
        self.assertNotIn('lobby', self.rooms)

    def test_join_and_leave_are_idempotent(self):
        self.rooms.join('general', 'alice')
        self.rooms.join('general', 'alice')
        self.rooms.join('general', 'bob')
        self.assertEqual(self.rooms.members('general'), ['alice', 'bob'])

        self.rooms.leave('general', 'alice')
        self.rooms.leave('general', 'alice')
        self.assertEqual(self.rooms.members('general'), ['bob'])

    def test_unknown_room_does_not_mutate(self):
        with self.assertRaises(UnknownRoomError):
            self.rooms.join('lobby', 'alice')
        for name in self.rooms.names():
            self.assertEqual(self.rooms.members(name), [])

    def test_members_is_a_snapshot(self):
        self.rooms.join('general', 'alice')
        snapshot = self.rooms.members('general')
        snapshot.append('mallory')
        self.assertEqual(self.rooms.members('general'), ['alice'])

    def test_rename_keeps_position(self):
        self.rooms.join('general', 'alice')
        self.rooms.join('general', 'Guest1')
        self.rooms.join('general', 'bob')

        self.assertEqual(self.rooms.rename('Guest1', 'zed'), ['general'])
        self.assertEqual(self.rooms.members('general'), ['alice', 'zed', 'bob'])

    def test_custom_room_table(self):
        rooms = RoomDirectory({'lobby': 'Hello'})
        self.assertEqual(len(rooms), 1)
        self.assertEqual(rooms.topic('lobby'), 'Hello')


class TestContentFilter(unittest.TestCase):
    """Test cases for sanitizing and banned-term matching."""

    def setUp(self):
        self.filter = ContentFilter(['darn', 'He-ck'])

    def test_sanitize(self):
        self.assertEqual(sanitize_input('  <b>hi</b> '), 'bhi/b')
        self.assertEqual(sanitize_input(None), '')

    def test_normalize(self):
        self.assertEqual(normalize('D.a-R n!'), 'darn')

    def test_obfuscated_term_is_blocked(self):
        self.assertTrue(self.filter.is_blocked('well D.A.R.N it'))
        self.assertTrue(self.filter.is_blocked('what the h e c k'))

    def test_containment_inside_longer_word_is_blocked(self):
        # Containment, not whole-word matching: "checkmate" contains "heck".
        self.assertTrue(self.filter.is_blocked('checkmate'))

    def test_clean_text_passes(self):
        self.assertFalse(self.filter.is_blocked('hello there'))
        self.assertFalse(ContentFilter().is_blocked('darn'))
        self.assertEqual(len(self.filter), 2)


if __name__ == '__main__':
    unittest.main()
