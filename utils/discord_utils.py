import discord
from discord.ext import commands
from typing import Iterable, Optional, Union

from utils.sanction_router import parse_user_id
from utils.sanctions_ledger import StaffRef


# =============================================================================
# Discord Utilities
# =============================================================================
# Helpers for resolving guild members, channels and role gates used by the
# sanctions cog.


def get_text_channel(bot: commands.Bot, channel_id: int) -> Optional[discord.TextChannel]:
    """
    Retrieve a TextChannel by ID from the bot's cache.

    Parameters:
        bot: The commands.Bot instance.
        channel_id: The ID of the text channel to retrieve.

    Returns:
        The TextChannel if found, otherwise None.
    """
    if not channel_id:
        return None
    channel = bot.get_channel(channel_id)
    return channel if isinstance(channel, discord.TextChannel) else None


async def resolve_member(guild: discord.Guild, text: Optional[str]) -> Optional[discord.Member]:
    """
    Resolve a mention or raw ID typed into a form to a guild member.

    Parameters:
        guild: The Guild to look the member up in.
        text: Free text containing a mention ("<@123...>") or an ID.

    Returns:
        The Member if the ID parses and the member exists, otherwise None.
    """
    user_id = parse_user_id(text)
    if user_id is None:
        return None
    member = guild.get_member(int(user_id))
    if member is not None:
        return member
    try:
        return await guild.fetch_member(int(user_id))
    except (discord.NotFound, discord.HTTPException):
        return None


def has_any_role(member: Union[discord.Member, discord.abc.User], role_ids: Iterable[int]) -> bool:
    """
    Check whether a member holds at least one of the given roles.

    An empty role list means the action is not gated and always passes.
    """
    role_ids = set(role_ids or [])
    if not role_ids:
        return True
    roles = getattr(member, "roles", None) or []
    return any(r.id in role_ids for r in roles)


def staff_ref(user: Optional[discord.abc.User]) -> Optional[StaffRef]:
    """Ledger reference (id + tag) for a Discord user, or None."""
    if user is None:
        return None
    return StaffRef(id=str(user.id), tag=str(user))
