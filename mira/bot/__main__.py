"""
mira.bot.__main__ — ``python -m mira.bot`` / ``mira-bot``
==========================================================

Reads secrets from ``.env`` and settings from ``config.yaml``, makes sure
the schema exists, then blocks in :meth:`MiraBot.run`.
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from mira.bot.core import MiraBot
from mira.config import load_config
from mira.database.engine import create_db_engine, init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("mira")

PLACEHOLDER_TOKEN = "your-discord-bot-token-here"


def main() -> None:
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN", "").strip()
    if token in ("", PLACEHOLDER_TOKEN):
        logger.critical("DISCORD_TOKEN is missing; set it in .env (see .env.example).")
        sys.exit(1)

    cfg = load_config()
    engine = create_db_engine()
    init_db(engine)

    logger.info("Starting %s for guild %d", cfg.bot_name, cfg.guild_id)
    try:
        MiraBot(cfg=cfg, engine=engine).run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Interrupted, bot stopped")


if __name__ == "__main__":
    main()
