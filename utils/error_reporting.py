# utils/error_reporting.py
import logging
import traceback
from typing import Optional

import discord
from discord.ext import commands

from utils.discord_utils import get_text_channel
from utils.time_utils import utcnow

log = logging.getLogger(__name__)

GENERIC_ERROR_TEXT = "❌ Something went wrong while handling that. Staff have been notified."


def build_error_log_embed(interaction: discord.Interaction, error: BaseException) -> discord.Embed:
    tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    short_tb = tb[-1500:]  # keep the tail, where the cause usually is

    embed = discord.Embed(
        title=f"❗ Unhandled Error: {type(error).__name__}",
        description=f"```py\n{short_tb}\n```",
        colour=discord.Colour.orange(),
        timestamp=utcnow(),
    )
    embed.add_field(name="User", value=f"{interaction.user} (`{interaction.user.id}`)", inline=False)
    if interaction.guild:
        embed.add_field(name="Guild", value=f"{interaction.guild.name} (`{interaction.guild.id}`)", inline=True)
        embed.add_field(name="Channel", value=f"#{interaction.channel}", inline=True)
    else:
        embed.add_field(name="Context", value="DM", inline=True)
    return embed


async def reply_ephemeral(interaction: discord.Interaction, content: str) -> None:
    """Reply or follow up depending on whether the interaction was already answered."""
    try:
        if interaction.response.is_done():
            await interaction.followup.send(content, ephemeral=True)
        else:
            await interaction.response.send_message(content, ephemeral=True)
    except discord.HTTPException as e:
        log.warning("Could not reply to interaction %s: %s", interaction.id, e)


async def report_interaction_error(
    bot: commands.Bot,
    interaction: discord.Interaction,
    error: BaseException,
    log_channel_id: Optional[int] = None,
) -> None:
    """Generic reply to the user, traceback to the logger and the staff log channel."""
    original = getattr(error, "original", error)
    log.error("Unhandled interaction error", exc_info=(type(original), original, original.__traceback__))

    await reply_ephemeral(interaction, GENERIC_ERROR_TEXT)

    channel = get_text_channel(bot, log_channel_id or 0)
    if channel is None:
        return
    try:
        await channel.send(embed=build_error_log_embed(interaction, original),
                           allowed_mentions=discord.AllowedMentions.none())
    except discord.HTTPException:
        log.warning("Could not post error report to channel %s", log_channel_id)
