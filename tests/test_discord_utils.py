"""
Sanctions Bot - Discord Helper Tests
====================================

Tests for member resolution, channel lookup and role gates.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord

from utils.discord_utils import get_text_channel, has_any_role, resolve_member, staff_ref
from utils.sanctions_ledger import StaffRef

USER_ID = "100000000000000042"


def role(role_id):
    r = MagicMock()
    r.id = role_id
    return r


class TestResolveMember:

    def test_cached_member(self):
        member = MagicMock()
        guild = MagicMock()
        guild.get_member.return_value = member
        guild.fetch_member = AsyncMock()

        assert asyncio.run(resolve_member(guild, f"<@{USER_ID}>")) is member
        guild.get_member.assert_called_once_with(int(USER_ID))
        guild.fetch_member.assert_not_awaited()

    def test_fetches_when_not_cached(self):
        member = MagicMock()
        guild = MagicMock()
        guild.get_member.return_value = None
        guild.fetch_member = AsyncMock(return_value=member)

        assert asyncio.run(resolve_member(guild, USER_ID)) is member

    def test_unknown_member(self):
        guild = MagicMock()
        guild.get_member.return_value = None
        guild.fetch_member = AsyncMock(side_effect=discord.NotFound(MagicMock(status=404, reason="Not Found"), "Unknown Member"))

        assert asyncio.run(resolve_member(guild, USER_ID)) is None

    def test_unparseable_text(self):
        guild = MagicMock()

        assert asyncio.run(resolve_member(guild, "somebody")) is None
        guild.get_member.assert_not_called()


class TestGetTextChannel:

    def test_zero_id(self):
        bot = MagicMock()
        assert get_text_channel(bot, 0) is None
        bot.get_channel.assert_not_called()

    def test_text_channel(self):
        channel = MagicMock(spec=discord.TextChannel)
        bot = MagicMock()
        bot.get_channel.return_value = channel

        assert get_text_channel(bot, 123) is channel

    def test_non_text_channel(self):
        bot = MagicMock()
        bot.get_channel.return_value = MagicMock(spec=discord.VoiceChannel)

        assert get_text_channel(bot, 123) is None


class TestRoles:

    def test_empty_role_list_is_open(self):
        assert has_any_role(MagicMock(roles=[]), []) is True

    def test_matching_role(self):
        member = MagicMock(roles=[role(1), role(2)])
        assert has_any_role(member, [2, 9]) is True

    def test_missing_role(self):
        member = MagicMock(roles=[role(1)])
        assert has_any_role(member, [9]) is False


class TestStaffRef:

    def test_from_user(self):
        user = MagicMock()
        user.id = 200000000000000001
        user.__str__.return_value = "moderator"

        assert staff_ref(user) == StaffRef("200000000000000001", "moderator")

    def test_none(self):
        assert staff_ref(None) is None
