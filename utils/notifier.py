# utils/notifier.py
import logging
from dataclasses import dataclass
from typing import Optional

import discord

log = logging.getLogger(__name__)


@dataclass
class NotifyResult:
    dm_sent: bool
    fallback_logged: bool = False


async def send_log(channel: Optional[discord.abc.Messageable], embed: discord.Embed) -> bool:
    """Post an embed to the staff log channel. Best-effort."""
    if channel is None:
        return False
    try:
        await channel.send(embed=embed, allowed_mentions=discord.AllowedMentions.none())
        return True
    except discord.HTTPException as e:
        log.warning("Could not post to log channel %s: %s", getattr(channel, "id", "?"), e)
        return False


async def notify_user(
    member: Optional[discord.abc.User],
    embed: discord.Embed,
    log_channel: Optional[discord.abc.Messageable],
    fallback_embed: discord.Embed,
) -> NotifyResult:
    """
    DM the sanctioned user; when that fails, leave a note in the log channel
    instead. Never raises and never touches the ledger.
    """
    if member is not None:
        try:
            await member.send(embed=embed)
            return NotifyResult(dm_sent=True)
        except discord.HTTPException as e:
            log.info("DM to %s failed: %s", member.id, e)

    logged = await send_log(log_channel, fallback_embed)
    return NotifyResult(dm_sent=False, fallback_logged=logged)
