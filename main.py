"""
# 1. Create a new venv directory called “venv”
python3 -m venv venv

pip install -e .


# 2. Activate it
source venv/bin/activate
"""

import logging
import os
from dotenv import load_dotenv
from client import activateBot
from utils.config_utils import SanctionsConfig, load_config


def configure_logging():
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
    # discord.py's gateway chatter is noisy at INFO
    logging.getLogger("discord").setLevel(logging.WARNING)


def main():
    # Load environment variables
    load_dotenv()
    configure_logging()
    token = os.getenv("DISCORD_BOT_TOKEN")
    application_id = int(os.getenv("DISCORD_APPLICATION_ID", "0") or 0) or None
    server_guild_id = int(os.getenv("DISCORD_SERVER_GUILD_ID", "0") or 0)

    # Load config.json once; cogs read the typed view from bot.sanctions_config
    config = load_config()
    sanctions_config = SanctionsConfig.from_dict(config)
    prefix = config.get("general", {}).get("bot_prefix", "!")

    # Start the bot
    activateBot(token, config, sanctions_config, prefix, application_id, server_guild_id)

if __name__ == "__main__":
    main()
