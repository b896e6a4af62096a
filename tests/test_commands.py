#!/usr/bin/env python3
"""
Unit tests for slash commands.
"""

import unittest

from helpers import ChatTestCase
from server.chat.pipeline import Outcome


class TestCommandDispatcher(ChatTestCase):
    """Test cases for every slash command and its failure modes."""

    async def test_me_broadcasts_and_persists_action(self):
        alice, alice_writer = await self.login('alice')
        bob, bob_writer = await self.login('bob')

        self.assertEqual(await self.say(alice, '/me waves hello'), Outcome.COMMAND)

        event = bob_writer.events('action-message')[0]
        self.assertEqual(event['username'], 'alice')
        self.assertEqual(event['action'], 'waves hello')
        row = (await self.store.load_history('general'))[-1]
        self.assertEqual((row.message, row.message_type), ('waves hello', 'action'))

    async def test_me_without_action_is_usage_error(self):
        alice, writer = await self.login('alice')
        self.assertEqual(await self.say(alice, '/me'), Outcome.COMMAND_FAILED)
        self.assertIn('Usage: /me', writer.events('command-error')[0]['message'])
        self.assertEqual(await self.store.count_messages('general'), 0)

    async def test_nick_refused_for_registered_user(self):
        alice, alice_writer = await self.login('alice')
        bob, bob_writer = await self.login('bob')
        bob_writer.clear()

        self.assertEqual(await self.say(alice, '/nick alicia'), Outcome.COMMAND_FAILED)

        self.assertIn('Registered users cannot change username', alice_writer.events('command-error')[0]['message'])
        self.assertEqual(self.session(alice).username, 'alice')
        self.assertEqual(self.chat.rooms.members('general'), ['alice', 'bob'])
        self.assertEqual(bob_writer.frames, [])

    async def test_nick_renames_guest_everywhere(self):
        guest, guest_writer = await self.login_guest()
        bob, bob_writer = await self.login('bob')
        old_name = self.session(guest).username
        bob_writer.clear()

        self.assertEqual(await self.say(guest, '/nick <Zed>'), Outcome.COMMAND)

        self.assertEqual(self.session(guest).username, 'Zed')
        self.assertEqual(self.chat.registry.find_by_username('Zed'), guest)
        for room in self.chat.rooms.names():
            self.assertNotIn(old_name, self.chat.rooms.members(room))
        self.assertIn('Zed', self.chat.rooms.members('general'))
        notice = bob_writer.events('system-message')[0]['text']
        self.assertEqual(notice, f"{old_name} changed their name to Zed")
        self.assertIn('Zed', bob_writer.events('users-update')[0]['users'])

    async def test_nick_length_bounds(self):
        guest, writer = await self.login_guest()
        name = self.session(guest).username

        self.assertEqual(await self.say(guest, '/nick Z'), Outcome.COMMAND_FAILED)
        self.assertEqual(await self.say(guest, '/nick ' + 'x' * 21), Outcome.COMMAND_FAILED)
        self.assertEqual(await self.say(guest, '/nick'), Outcome.COMMAND_FAILED)
        self.assertEqual(self.session(guest).username, name)
        self.assertEqual(await self.say(guest, '/nick ' + 'x' * 20), Outcome.COMMAND)

    async def test_nick_cannot_take_online_registered_name(self):
        alice, alice_writer = await self.login('alice')
        guest, guest_writer = await self.login_guest()
        bob, _ = await self.login('bob')
        guest_name = self.session(guest).username

        self.assertEqual(await self.say(guest, '/nick alice'), Outcome.COMMAND_FAILED)
        self.assertEqual(self.session(guest).username, guest_name)
        self.assertEqual(self.chat.registry.find_by_username('alice'), alice)

        await self.say(guest, '/join random')
        alice_writer.clear()
        await self.say(bob, 'hello general')

        self.assertIn('alice', self.chat.rooms.members('general'))
        self.assertEqual([e['message'] for e in alice_writer.events('chat-message')], ['hello general'])

    async def test_nick_cannot_take_offline_account_name(self):
        carol, _ = await self.login('carol')
        await self.chat.disconnect_client(carol)
        guest, writer = await self.login_guest()

        self.assertEqual(await self.say(guest, '/nick carol'), Outcome.COMMAND_FAILED)
        self.assertIn('registered user', writer.events('command-error')[0]['message'])
        self.assertNotEqual(self.session(guest).username, 'carol')

    async def test_nick_cannot_take_another_guests_name(self):
        first, _ = await self.login_guest()
        second, writer = await self.login_guest()
        await self.say(first, '/nick Zed')

        self.assertEqual(await self.say(second, '/nick Zed'), Outcome.COMMAND_FAILED)
        self.assertIn('already in use', writer.events('command-error')[0]['message'])
        self.assertEqual(self.chat.registry.find_by_username('Zed'), first)

    async def test_color(self):
        alice, writer = await self.login('alice')

        self.assertEqual(await self.say(alice, '/color #AbCdEf'), Outcome.COMMAND)
        self.assertEqual(self.session(alice).color, '#AbCdEf')
        self.assertEqual(writer.events('color-changed')[0]['color'], '#AbCdEf')

        for bad in ('/color', '/color red', '/color #12345', '/color #GGGGGG'):
            self.assertEqual(await self.say(alice, bad), Outcome.COMMAND_FAILED)
        self.assertEqual(self.session(alice).color, '#AbCdEf')

    async def test_clear_is_sender_only(self):
        alice, alice_writer = await self.login('alice')
        bob, bob_writer = await self.login('bob')
        bob_writer.clear()

        self.assertEqual(await self.say(alice, '/clear'), Outcome.COMMAND)
        self.assertEqual(len(alice_writer.events('clear-chat')), 1)
        self.assertEqual(bob_writer.frames, [])

    async def test_status(self):
        alice, alice_writer = await self.login('alice')
        bob, bob_writer = await self.login('bob')

        self.assertEqual(await self.say(alice, '/status Away'), Outcome.COMMAND)
        self.assertEqual(self.session(alice).status, 'Away')
        change = bob_writer.events('user-status-change')[0]
        self.assertEqual((change['username'], change['status']), ('alice', 'Away'))

        self.assertEqual(await self.say(alice, '/status sleeping'), Outcome.COMMAND_FAILED)
        self.assertEqual(self.session(alice).status, 'Away')

    async def test_join_moves_between_rooms(self):
        alice, alice_writer = await self.login('alice')
        bob, bob_writer = await self.login('bob')
        await self.say(bob, '/join random')
        await self.say(bob, 'anyone here?')
        await self.say(bob, '/join general')
        alice_writer.clear()
        bob_writer.clear()

        self.assertEqual(await self.say(alice, '/join random'), Outcome.COMMAND)

        self.assertEqual(self.session(alice).room, 'random')
        self.assertEqual(self.chat.rooms.members('general'), ['bob'])
        self.assertEqual(self.chat.rooms.members('random'), ['alice'])
        self.assertIn('random', self.session(alice).rooms_visited)
        self.assertEqual(bob_writer.events('system-message')[0]['text'], 'alice left the room')
        history = alice_writer.events('message-history')[0]
        self.assertEqual([m['message'] for m in history['messages']], ['anyone here?'])
        changed = alice_writer.events('room-changed')[0]
        self.assertEqual((changed['room'], changed['topic']), ('random', 'Random Stuff'))

    async def test_join_rejects_unknown_and_current_room(self):
        alice, writer = await self.login('alice')

        self.assertEqual(await self.say(alice, '/join lobby'), Outcome.COMMAND_FAILED)
        self.assertEqual(await self.say(alice, '/join general'), Outcome.COMMAND_FAILED)
        self.assertEqual(await self.say(alice, '/join'), Outcome.COMMAND_FAILED)

        messages = [e['message'] for e in writer.events('command-error')]
        self.assertIn('You are already in this room!', messages)
        self.assertEqual(self.session(alice).room, 'general')
        self.assertEqual(self.chat.rooms.members('general'), ['alice'])

    async def test_visiting_every_room_unlocks_room_hopper(self):
        alice, writer = await self.login('alice')
        for room in ('random', 'images', 'windows'):
            await self.say(alice, f'/join {room}')
        await self.say(alice, 'made it')

        unlocked = [e['achievement'] for e in writer.events('achievement-unlocked')]
        self.assertIn('room-hopper', unlocked)

    async def test_msg_delivers_privately_and_unlocks_socialite_once(self):
        alice, alice_writer = await self.login('alice')
        bob, bob_writer = await self.login('bob')
        carol, carol_writer = await self.login('carol')
        carol_writer.clear()

        self.assertEqual(await self.say(alice, '/msg bob psst over here'), Outcome.COMMAND)
        self.assertEqual(await self.say(alice, '/msg bob again'), Outcome.COMMAND)

        received = bob_writer.events('private-message')
        self.assertEqual([(e['from'], e['message']) for e in received],
                         [('alice', 'psst over here'), ('alice', 'again')])
        self.assertEqual(alice_writer.events('private-message-sent')[0]['to'], 'bob')
        self.assertEqual(carol_writer.frames, [])
        unlocked = [e['achievement'] for e in alice_writer.events('achievement-unlocked')]
        self.assertEqual(unlocked, ['socialite'])

    async def test_msg_failures(self):
        alice, writer = await self.login('alice')

        self.assertEqual(await self.say(alice, '/msg nobody hello'), Outcome.COMMAND_FAILED)
        self.assertEqual(writer.events('command-error')[-1]['message'], "User 'nobody' not found.")
        self.assertEqual(await self.say(alice, '/msg bob'), Outcome.COMMAND_FAILED)
        self.assertEqual(await self.say(alice, '/msg'), Outcome.COMMAND_FAILED)
        self.assertEqual(await self.store.get_achievements('alice'), [])

    async def test_guest_msg_earns_nothing(self):
        guest, guest_writer = await self.login_guest()
        bob, _ = await self.login('bob')

        self.assertEqual(await self.say(guest, '/msg bob hi'), Outcome.COMMAND)
        self.assertEqual(guest_writer.events('achievement-unlocked'), [])

    async def test_help_and_case_insensitive_names(self):
        alice, writer = await self.login('alice')
        self.assertEqual(await self.say(alice, '/HELP'), Outcome.COMMAND)
        commands = writer.events('help-message')[0]['commands']
        self.assertTrue(any(line.startswith('/msg') for line in commands))
        self.assertTrue(any('!dog' in line for line in commands))

    async def test_unknown_command(self):
        alice, alice_writer = await self.login('alice')
        bob, bob_writer = await self.login('bob')
        bob_writer.clear()

        self.assertEqual(await self.say(alice, '/dance now'), Outcome.COMMAND_FAILED)
        self.assertIn('Unknown command: /dance', alice_writer.events('command-error')[0]['message'])
        self.assertEqual(bob_writer.frames, [])


if __name__ == '__main__':
    unittest.main()
