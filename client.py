import logging
import os

import discord
from discord.ext import commands

from utils.config_utils import SanctionsConfig
from utils.time_utils import now_in

log = logging.getLogger(__name__)

default_none_null_value_str = "-"
errors = []
loaded_cogs = {
    "listeners": [],
    "commands": []
}
startup_time = None

# Status labels
STATUS_SUCCESS = "✅"
STATUS_FAILED = "❌"
STATUS_NO_COGS = "No cogs"


LISTENER_COGS_FOLDER_NAME = "listeners"
COMMANDS_COGS_FOLDER_NAME = "commands"


class SanctionsBot(commands.Bot):
    def __init__(self, **kwargs):
        self.server_guild_id = kwargs.pop("server_guild_id")
        self.config = kwargs.pop("config")
        self.sanctions_config = kwargs.pop("sanctions_config")
        super().__init__(**kwargs)

    async def setup_hook(self):
        # Load all cogs first
        await load_cogs(self)

        # Sync slash commands to the configured server (instant, guild-only)
        if self.server_guild_id:
            guild = discord.Object(id=self.server_guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            log.info("Synced %d slash commands to guild %s", len(synced), self.server_guild_id)
        else:
            synced = await self.tree.sync()
            log.info("Synced %d global slash commands", len(synced))


async def load_cogs(bot: commands.Bot):
    folder_labels = {
        LISTENER_COGS_FOLDER_NAME: "LISTENER COGS",
        COMMANDS_COGS_FOLDER_NAME: "COMMAND COGS"
    }

    for folder_name in [LISTENER_COGS_FOLDER_NAME, COMMANDS_COGS_FOLDER_NAME]:
        try:
            files = sorted(f for f in os.listdir(f"./{folder_name}") if f.endswith(".py"))
        except FileNotFoundError:
            files = []

        total = len(files)
        label_with_count = f"{folder_labels[folder_name]} ({total})"

        spacing = max(24, len(label_with_count) + 1)
        print("|")
        print(f"| STATUS{'':<10}{label_with_count:<{spacing}}DESCRIPTION")

        if total == 0:
            print(f"| * {STATUS_NO_COGS:<14}{default_none_null_value_str:<24}{default_none_null_value_str}")
            continue

        for file in files:
            name = file[:-3]
            cog_path = f"{folder_name}.{name}"
            try:
                await bot.load_extension(cog_path)
                description = get_cog_description(bot, name)
                loaded_cogs[folder_name].append((file, description))
                print(f"| * {STATUS_SUCCESS:<13}{file:<24}{description}")
            except commands.ExtensionError as e:
                errors.append({
                    "cog": name,
                    "cog_file": file,
                    "error_type": type(e).__name__,
                    "error_message": str(e)
                })
                # print the failure line with a dash in the DESCRIPTION column...
                print(f"| * {STATUS_FAILED:<13}{file:<24}{default_none_null_value_str}")
                # ...and keep the full traceback in the log
                log.exception("Error loading %s", file)


def get_cog_description(bot: commands.Bot, name: str) -> str:
    """
    Given a file base `name` (like 'command_errors'), convert it to the
    Cog class name ('CommandErrors') and fetch its .description
    """
    cog_name = "".join(part.title() for part in name.split("_"))
    cog = bot.get_cog(cog_name)
    desc = getattr(cog, "description", default_none_null_value_str)
    return format_description(desc)


def format_description(desc: str) -> str:
    max_description_length = 35
    if not desc or desc.strip() == "":
        return default_none_null_value_str
    if len(desc) > max_description_length:
        return desc[:max_description_length - 3] + "..."
    return desc


def print_startup_stats(bot: commands.Bot):
    print("|")
    total_loaded = sum(len(v) for v in loaded_cogs.values())
    total_errors = len(errors)
    success_rate = int((total_loaded / (total_loaded + total_errors)) * 100) if (total_loaded + total_errors) > 0 else 0
    guilds = bot.guilds
    latency_ms = round(bot.latency * 1000)

    print(f"| GENERAL INFO")
    print(f"| * Logged in as: {bot.user} (PID: {os.getpid()})")
    print(f"| * Cogs loaded: {total_loaded} - Errors: {total_errors} - Total: {total_loaded + total_errors} ({success_rate}%)")
    print(f"| * Connected guild(s): {len(guilds)} (Server name: {guilds[0].name if guilds else 'N/A'})")
    print(f"| * Session start time: {startup_time.strftime('%Y-%m-%d %I:%M:%S %p %Z')}")
    print(f"| * On Startup latency: {latency_ms}ms")
    print_sanctions_summary(bot.sanctions_config)
    print("|")


def print_sanctions_summary(cfg: SanctionsConfig):
    log_channel = cfg.log_channel_id or "not set"
    print("|")
    print(f"| SANCTIONS")
    print(f"| * Ledger file: {cfg.db_path}")
    print(f"| * Limits: {cfg.warn_limit} warns per automatic strike - {cfg.strike_limit} strikes shown as max")
    print(f"| * Log channel: {log_channel}")
    print(f"| * Gated roles: sanction {len(cfg.sanction_roles)} - annul {len(cfg.annul_roles)} - list {len(cfg.list_roles)}")


def activateBot(discord_bot_token, config, sanctions_config, bot_prefix, discord_application_id, server_guild_id):
    intents = discord.Intents.default()
    intents.members = True

    bot = SanctionsBot(
        command_prefix=bot_prefix,
        intents=intents,
        application_id=discord_application_id,
        server_guild_id=server_guild_id,
        config=config,
        sanctions_config=sanctions_config,
    )

    bot.remove_command("help")

    @bot.event
    async def on_ready():
        global startup_time
        startup_time = now_in(sanctions_config.timezone)

        print("|")
        print(f"│ Starting up bot client...")
        print_startup_stats(bot)

    # logging is configured in main.py
    bot.run(discord_bot_token, log_handler=None)
