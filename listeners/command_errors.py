import logging

import discord
from discord import app_commands
from discord.ext import commands

from utils.error_reporting import reply_ephemeral, report_interaction_error

log = logging.getLogger(__name__)


class CommandErrors(commands.Cog):
    """Global slash command error handler (clean messages for users, rich logs for staff)."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.log_channel_id = bot.sanctions_config.log_channel_id
        self._previous_handler = None

    async def cog_load(self):
        self._previous_handler = self.bot.tree.on_error
        self.bot.tree.on_error = self.on_app_command_error

    async def cog_unload(self):
        if self._previous_handler is not None:
            self.bot.tree.on_error = self._previous_handler

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Centralized error handler. Attempts to be quiet, helpful, and safe."""

        # 1) Common, user-facing errors
        if isinstance(error, app_commands.CommandOnCooldown):
            return await reply_ephemeral(
                interaction, f"⏳ This command is on cooldown. Try again in `{error.retry_after:.2f}`s."
            )

        if isinstance(error, app_commands.MissingPermissions):
            missing = ", ".join(error.missing_permissions) or "required permissions"
            return await reply_ephemeral(interaction, f"🚫 You are missing: `{missing}`.")

        if isinstance(error, app_commands.BotMissingPermissions):
            missing = ", ".join(error.missing_permissions) or "required permissions"
            return await reply_ephemeral(interaction, f"🤖 I am missing: `{missing}`. Please adjust my role permissions.")

        if isinstance(error, app_commands.NoPrivateMessage):
            return await reply_ephemeral(interaction, "📛 This command can only be used in a server channel.")

        if isinstance(error, app_commands.CheckFailure):
            # Generic check failure (covers custom checks)
            return await reply_ephemeral(interaction, "🚫 You cannot use this command.")

        # 2) Fallback: quietly inform user, log details for staff
        await report_interaction_error(self.bot, interaction, error, self.log_channel_id)


async def setup(bot: commands.Bot):
    await bot.add_cog(CommandErrors(bot))
