# utils/sanction_embeds.py
from typing import List, Optional

import discord

from utils.config_utils import SanctionsConfig, hex_to_int
from utils.sanction_router import SearchOutcome, UserSanctions
from utils.sanctions_ledger import Counts, SanctionRecord, SanctionType
from utils.time_utils import discord_timestamp, utcnow

DM_FAILED_COLOR = 0xFF5860
DESCRIPTION_LIMIT = 4000


def _decorate(embed: discord.Embed, logo_url: str, image_url: str, footer: str) -> discord.Embed:
    if logo_url:
        embed.set_thumbnail(url=logo_url)
    if image_url:
        embed.set_image(url=image_url)
    if footer:
        embed.set_footer(text=footer)
    return embed


def _truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 20] + "\n… (truncated)"


def record_line(r: SanctionRecord, with_user: bool = False) -> str:
    parts = []
    if with_user:
        parts.append(f"**{r.user_tag or r.user_id}** (<@{r.user_id}>)")
    parts.append(f"**{r.type.value.upper()}**")
    parts.append(f"Reason: {r.reason or '-'}")
    parts.append(f"Authorized: {r.authorized_by.tag or '-'}")
    parts.append(f"ID: `{r.id}`")
    parts.append(f"Date: {discord_timestamp(r.created_at, 'd')}")
    if r.ticket:
        parts.append(f"Ticket: {r.ticket}")
    return "• " + " | ".join(parts)


# ───────────────────────────── Staff log ─────────────────────────────

def _log_base(cfg: SanctionsConfig, title: str) -> discord.Embed:
    embed = discord.Embed(title=title, color=cfg.embed_color_int, timestamp=utcnow())
    lst = cfg.list_embed
    return _decorate(embed, lst.logo_url, lst.image_url, lst.footer)


def build_log_new_sanction(cfg: SanctionsConfig, record: SanctionRecord, counts: Counts) -> discord.Embed:
    title = "⚙️ Automatic strike" if record.auto else "📌 New sanction"
    embed = _log_base(cfg, title)
    embed.add_field(name="User", value=f"<@{record.user_id}> ({record.user_id})", inline=False)
    embed.add_field(name="Type", value=record.type.value.upper(), inline=True)
    embed.add_field(name="Reason", value=record.reason or "-", inline=True)
    embed.add_field(name="Authorized by", value=record.authorized_by.tag or "-", inline=True)
    embed.add_field(name="Issued by", value=f"<@{record.issued_by.id}> ({record.issued_by.id})", inline=False)
    embed.add_field(name="Sanction ID", value=record.id, inline=False)
    embed.add_field(name="Total", value=counts.label, inline=False)
    if record.ticket:
        embed.add_field(name="Ticket", value=record.ticket, inline=False)
    return embed


def build_log_annulment(cfg: SanctionsConfig, record: SanctionRecord, counts: Counts) -> discord.Embed:
    annul = record.annul
    embed = _log_base(cfg, "🍀 Sanction annulled")
    embed.add_field(name="User", value=f"<@{record.user_id}> ({record.user_id})", inline=False)
    embed.add_field(name="Type", value=record.type.value.upper(), inline=True)
    embed.add_field(name="Annulment reason", value=(annul.reason if annul else "") or "-", inline=True)
    embed.add_field(name="Authorized by", value=(annul.authorized_by.tag if annul else "") or "-", inline=True)
    if annul:
        embed.add_field(name="Annulled by", value=f"<@{annul.by.id}> ({annul.by.id})", inline=False)
    embed.add_field(name="Sanction ID", value=record.id, inline=False)
    embed.add_field(name="Total", value=counts.label, inline=False)
    ticket = (annul.ticket if annul else None) or record.ticket
    if ticket:
        embed.add_field(name="Ticket", value=ticket, inline=False)
    return embed


def build_dm_failed(user_id: str, record: SanctionRecord, annulment: bool = False) -> discord.Embed:
    title = "⚠️ Could not send DM (annulment)" if annulment else "⚠️ Could not send DM"
    embed = discord.Embed(
        title=title,
        description=f"Could not DM <@{user_id}> ({user_id}). Their DMs may be closed.",
        color=DM_FAILED_COLOR,
        timestamp=utcnow(),
    )
    ticket = (record.annul.ticket if annulment and record.annul else None) or record.ticket
    embed.add_field(name="Type", value=record.type.value.upper(), inline=True)
    embed.add_field(name="Ticket", value=ticket or "-", inline=True)
    return embed


# ───────────────────────────── Direct messages ─────────────────────────────

def build_dm_sanction(cfg: SanctionsConfig, record: SanctionRecord, guild_name: str,
                      counts: Optional[Counts] = None) -> discord.Embed:
    dm = cfg.dm_embed
    title = dm.title_warn if record.type == SanctionType.WARN else dm.title_strike
    embed = discord.Embed(
        title=title,
        description=f"In **{guild_name}**",
        color=hex_to_int(dm.color),
        timestamp=utcnow(),
    )
    embed.add_field(name="Reason", value=record.reason or "-", inline=False)
    embed.add_field(name="Authorized by", value=record.authorized_by.tag or "-", inline=False)
    if counts is not None:
        embed.add_field(name="Progress", value=counts.label, inline=False)
    if record.ticket:
        embed.add_field(name="Ticket", value=record.ticket, inline=False)
    return _decorate(embed, dm.logo_url, dm.image_url, dm.footer)


def build_dm_annul(cfg: SanctionsConfig, record: SanctionRecord, guild_name: str,
                   counts: Optional[Counts] = None) -> discord.Embed:
    dm = cfg.dm_embed
    annul = record.annul
    embed = discord.Embed(
        title=dm.title_annul,
        description=f"Your **{record.type.value.upper()}** in **{guild_name}** was **annulled**.",
        color=hex_to_int(dm.color),
        timestamp=utcnow(),
    )
    embed.add_field(name="Annulment reason", value=(annul.reason if annul else "") or "-", inline=False)
    embed.add_field(name="Authorized by", value=(annul.authorized_by.tag if annul else "") or "-", inline=False)
    if counts is not None:
        embed.add_field(name="Progress", value=counts.label, inline=False)
    ticket = (annul.ticket if annul else None) or record.ticket
    if ticket:
        embed.add_field(name="Ticket", value=ticket, inline=False)
    return _decorate(embed, dm.logo_url, dm.image_url, dm.footer)


# ───────────────────────────── Panel / list / search ─────────────────────────────

def build_panel(cfg: SanctionsConfig) -> discord.Embed:
    panel = cfg.panel_embed
    embed = discord.Embed(title=panel.title, color=hex_to_int(panel.color), timestamp=utcnow())
    embed.add_field(
        name="Buttons",
        value=(
            "• **Sanction** → Opens a form to apply a `WARN` or `STRIKE`.\n"
            "• **Annul sanction** → Opens a form to annul a user's sanction (or one by ticket).\n"
            "• **Search** → Shows a user's active sanctions."
        ),
        inline=False,
    )
    embed.add_field(
        name="**Tips**",
        value=(
            "• Copy the **user ID** of the target and of whoever authorizes before opening a form.\n"
            "• Write the reason clearly (avoid all caps).\n"
            "• Double check you are sanctioning the right user."
        ),
        inline=False,
    )
    return _decorate(embed, panel.logo_url, panel.image_url, panel.footer)


def build_list(cfg: SanctionsConfig, groups: List[UserSanctions]) -> discord.Embed:
    total = sum(len(g.records) for g in groups)
    lines: List[str] = []
    for g in groups:
        lines.append(f"**<@{g.user_id}>** · {g.counts.label if g.counts else ''}")
        lines.extend(record_line(r) for r in g.records)
    embed = discord.Embed(
        title=f"{cfg.list_embed.title}: {total}",
        description=_truncate("\n".join(lines)) if lines else "No active sanctions.",
        color=cfg.embed_color_int,
        timestamp=utcnow(),
    )
    lst = cfg.list_embed
    return _decorate(embed, lst.logo_url, lst.image_url, lst.footer)


def build_search(cfg: SanctionsConfig, outcome: SearchOutcome, display_name: Optional[str] = None) -> discord.Embed:
    lines = [record_line(r) for r in outcome.records]
    embed = discord.Embed(
        title=f"Sanctions of {display_name or outcome.user_id}",
        description=_truncate("\n".join(lines)) if lines else "No active sanctions.",
        color=cfg.embed_color_int,
        timestamp=utcnow(),
    )
    embed.add_field(name="Progress", value=outcome.counts.label, inline=False)
    lst = cfg.list_embed
    return _decorate(embed, lst.logo_url, lst.image_url, lst.footer)
