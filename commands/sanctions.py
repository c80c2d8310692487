# commands/sanctions.py
import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands
from discord.ui import Button, Modal, TextInput, View

from utils.config_utils import SanctionsConfig
from utils.discord_utils import get_text_channel, has_any_role, resolve_member, staff_ref
from utils.error_reporting import reply_ephemeral, report_interaction_error
from utils.notifier import notify_user, send_log
from utils.sanction_embeds import (
    build_dm_annul,
    build_dm_failed,
    build_dm_sanction,
    build_list,
    build_log_annulment,
    build_log_new_sanction,
    build_panel,
    build_search,
)
from utils.sanction_router import Failure, FailureKind, SanctionRouter

log = logging.getLogger(__name__)


def failure_message(failure: Failure) -> str:
    if failure.kind == FailureKind.PERSISTENCE_FAILED:
        return f"❌ {failure.detail} Nothing was changed, please try again."
    return f"❌ {failure.detail}"


# ──────────────────────────────────────────────────────────────────────────────
# Modals
# ──────────────────────────────────────────────────────────────────────────────

class SanctionModal(Modal, title="Sanction user"):
    user = TextInput(label="User to sanction (mention or ID)", required=True, max_length=100)
    sanction_type = TextInput(label="Type (warn or strike)", placeholder="warn", required=True, max_length=10)
    reason = TextInput(label="Reason", style=discord.TextStyle.paragraph, required=True, max_length=1000)
    authorized_by = TextInput(label="Authorized by (mention or ID)", required=True, max_length=100)
    ticket = TextInput(label="Ticket number (optional)", required=False, max_length=100)

    def __init__(self, cog: "Sanctions"):
        super().__init__()
        self.cog = cog

    async def on_submit(self, interaction: discord.Interaction):
        await self.cog.handle_sanction(
            interaction,
            user_text=self.user.value,
            type_text=self.sanction_type.value,
            reason=self.reason.value,
            authorizer_text=self.authorized_by.value,
            ticket=self.ticket.value or "",
        )

    async def on_error(self, interaction: discord.Interaction, error: Exception):
        await report_interaction_error(self.cog.bot, interaction, error, self.cog.cfg.log_channel_id)


class AnnulModal(Modal, title="Annul sanction"):
    user = TextInput(label="User (mention or ID, blank if by ticket)", required=False, max_length=100)
    sanction_type = TextInput(label="Type (warn or strike, blank if by ticket)", required=False, max_length=10)
    reason = TextInput(label="Annulment reason", style=discord.TextStyle.paragraph, required=True, max_length=1000)
    authorized_by = TextInput(label="Authorized by (mention or ID)", required=True, max_length=100)
    ticket = TextInput(label="Ticket number (optional)", required=False, max_length=100)

    def __init__(self, cog: "Sanctions"):
        super().__init__()
        self.cog = cog

    async def on_submit(self, interaction: discord.Interaction):
        await self.cog.handle_annul(
            interaction,
            reason=self.reason.value,
            authorizer_text=self.authorized_by.value,
            user_text=self.user.value or "",
            type_text=self.sanction_type.value or "",
            ticket=self.ticket.value or "",
        )

    async def on_error(self, interaction: discord.Interaction, error: Exception):
        await report_interaction_error(self.cog.bot, interaction, error, self.cog.cfg.log_channel_id)


class SearchModal(Modal, title="Search a user's sanctions"):
    user = TextInput(label="User (mention or ID)", required=True, max_length=100)

    def __init__(self, cog: "Sanctions"):
        super().__init__()
        self.cog = cog

    async def on_submit(self, interaction: discord.Interaction):
        await self.cog.handle_search(interaction, self.user.value)

    async def on_error(self, interaction: discord.Interaction, error: Exception):
        await report_interaction_error(self.cog.bot, interaction, error, self.cog.cfg.log_channel_id)


# ──────────────────────────────────────────────────────────────────────────────
# Panel (persistent view)
# ──────────────────────────────────────────────────────────────────────────────

class SanctionPanelView(View):
    def __init__(self, cog: "Sanctions"):
        super().__init__(timeout=None)
        self.cog = cog

    @discord.ui.button(label="Sanction", style=discord.ButtonStyle.danger, custom_id="sanctions:apply")
    async def sanction(self, interaction: discord.Interaction, button: Button):
        if not has_any_role(interaction.user, self.cog.cfg.sanction_roles):
            return await interaction.response.send_message("❌ You are not allowed to sanction.", ephemeral=True)
        await interaction.response.send_modal(SanctionModal(self.cog))

    @discord.ui.button(label="Annul sanction", style=discord.ButtonStyle.secondary, custom_id="sanctions:annul")
    async def annul(self, interaction: discord.Interaction, button: Button):
        if not has_any_role(interaction.user, self.cog.cfg.annul_roles):
            return await interaction.response.send_message("❌ You are not allowed to annul sanctions.", ephemeral=True)
        await interaction.response.send_modal(AnnulModal(self.cog))

    @discord.ui.button(label="Search", style=discord.ButtonStyle.primary, custom_id="sanctions:search")
    async def search(self, interaction: discord.Interaction, button: Button):
        if not has_any_role(interaction.user, self.cog.cfg.list_roles):
            return await interaction.response.send_message("❌ You are not allowed to search sanctions.", ephemeral=True)
        await interaction.response.send_modal(SearchModal(self.cog))

    async def on_error(self, interaction: discord.Interaction, error: Exception, item):
        await report_interaction_error(self.cog.bot, interaction, error, self.cog.cfg.log_channel_id)


# ──────────────────────────────────────────────────────────────────────────────
# Cog
# ──────────────────────────────────────────────────────────────────────────────

class Sanctions(commands.Cog):
    """Warn/strike sanctions with automatic strikes, annulments and search."""

    def __init__(self, bot: commands.Bot, cfg: Optional[SanctionsConfig] = None, router: Optional[SanctionRouter] = None):
        self.bot = bot
        self.cfg = cfg or bot.sanctions_config
        self.router = router or SanctionRouter(self.cfg)

        # register the panel so its buttons keep working after a restart
        bot.add_view(SanctionPanelView(self))

    def _log_channel(self):
        return get_text_channel(self.bot, self.cfg.log_channel_id)

    # ───────────────────────────── Handlers ─────────────────────────────

    async def handle_sanction(
        self,
        interaction: discord.Interaction,
        *,
        user_text: str,
        type_text: str,
        reason: str,
        authorizer_text: str,
        ticket: str = "",
    ):
        guild = interaction.guild
        await interaction.response.defer(ephemeral=True, thinking=True)

        target = await resolve_member(guild, user_text)
        authorizer = await resolve_member(guild, authorizer_text)
        result = self.router.apply_sanction(
            guild.id,
            staff_ref(target),
            type_text,
            reason,
            staff_ref(authorizer),
            staff_ref(interaction.user),
            ticket,
        )
        if not result.ok:
            return await interaction.followup.send(failure_message(result.failure), ephemeral=True)

        outcome = result.value
        record, counts = outcome.record, outcome.counts
        log_channel = self._log_channel()

        notified = await notify_user(
            target,
            build_dm_sanction(self.cfg, record, guild.name, counts),
            log_channel,
            build_dm_failed(record.user_id, record),
        )
        await send_log(log_channel, build_log_new_sanction(self.cfg, record, counts))

        content = (
            f"✅ **{record.type.value.upper()}** applied to {target.mention}. "
            f"ID: `{record.id}` · {counts.label}"
        )
        if outcome.escalation is not None:
            auto = outcome.escalation
            auto_notified = await notify_user(
                target,
                build_dm_sanction(self.cfg, auto, guild.name, counts),
                log_channel,
                build_dm_failed(auto.user_id, auto),
            )
            await send_log(log_channel, build_log_new_sanction(self.cfg, auto, counts))
            content += f"\n⚙️ Warn limit reached: automatic **STRIKE** `{auto.id}` issued."
            notified.dm_sent = notified.dm_sent and auto_notified.dm_sent
        if not notified.dm_sent:
            content += " · ⚠️ DM not sent"

        await interaction.followup.send(content, ephemeral=True)

    async def handle_annul(
        self,
        interaction: discord.Interaction,
        *,
        reason: str,
        authorizer_text: str,
        user_text: str = "",
        type_text: str = "",
        ticket: str = "",
        sanction_id: str = "",
    ):
        guild = interaction.guild
        await interaction.response.defer(ephemeral=True, thinking=True)

        authorizer = await resolve_member(guild, authorizer_text)
        result = self.router.annul_sanction(
            guild.id,
            reason,
            staff_ref(authorizer),
            staff_ref(interaction.user),
            user_text=user_text,
            type_text=type_text,
            ticket=ticket,
            sanction_id=sanction_id,
        )
        if not result.ok:
            return await interaction.followup.send(failure_message(result.failure), ephemeral=True)

        record, counts = result.value.record, result.value.counts
        log_channel = self._log_channel()
        target = await resolve_member(guild, record.user_id)

        notified = await notify_user(
            target,
            build_dm_annul(self.cfg, record, guild.name, counts),
            log_channel,
            build_dm_failed(record.user_id, record, annulment=True),
        )
        await send_log(log_channel, build_log_annulment(self.cfg, record, counts))

        content = (
            f"✅ **{record.type.value.upper()}** annulled for <@{record.user_id}>. "
            f"ID: `{record.id}` · {counts.label}"
        )
        if not notified.dm_sent:
            content += " · ⚠️ DM not sent"
        await interaction.followup.send(content, ephemeral=True)

    async def handle_search(self, interaction: discord.Interaction, user_text: str):
        result = self.router.search(interaction.guild.id, user_text)
        if not result.ok:
            return await reply_ephemeral(interaction, failure_message(result.failure))
        member = await resolve_member(interaction.guild, result.value.user_id)
        display = str(member) if member else None
        await interaction.response.send_message(embed=build_search(self.cfg, result.value, display), ephemeral=True)

    # ───────────────────────────── Commands ─────────────────────────────

    @app_commands.command(name="sanctions-panel", description="Post the panel with Sanction / Annul / Search buttons")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def sanctions_panel(self, interaction: discord.Interaction):
        staff_roles = self.cfg.sanction_roles + self.cfg.annul_roles + self.cfg.list_roles
        perms = getattr(interaction.user, "guild_permissions", None)
        if not has_any_role(interaction.user, staff_roles) and not (perms and perms.manage_guild):
            return await interaction.response.send_message("❌ You are not allowed to use the panel.", ephemeral=True)
        await interaction.response.send_message(embed=build_panel(self.cfg), view=SanctionPanelView(self))
        log.info("Sanctions panel posted in #%s by %s", interaction.channel, interaction.user)

    @app_commands.command(name="sanctions-list", description="Show the active sanctions of this server")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def sanctions_list(self, interaction: discord.Interaction):
        if not has_any_role(interaction.user, self.cfg.list_roles):
            return await interaction.response.send_message("❌ You are not allowed to list sanctions.", ephemeral=True)
        await interaction.response.defer(ephemeral=not self.cfg.list_embed.public)
        result = self.router.list_active(interaction.guild.id)
        await interaction.followup.send(embed=build_list(self.cfg, result.value))

    @app_commands.command(name="sanction-annul-id", description="Annul one sanction by its ID")
    @app_commands.describe(
        sanction_id="The sanction ID shown in the log, search or list",
        reason="Why the sanction is annulled",
        authorized_by="Staff member who authorized the annulment",
    )
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    async def sanction_annul_id(self, interaction: discord.Interaction, sanction_id: str, reason: str,
                                authorized_by: discord.Member):
        if not has_any_role(interaction.user, self.cfg.annul_roles):
            return await interaction.response.send_message("❌ You are not allowed to annul sanctions.", ephemeral=True)
        await self.handle_annul(
            interaction,
            reason=reason,
            authorizer_text=str(authorized_by.id),
            sanction_id=sanction_id,
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(Sanctions(bot))
