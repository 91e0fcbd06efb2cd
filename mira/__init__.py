"""
Mira — Discord Bot Administration Dashboard
============================================
Backend, client and bot for administering the Mira Discord bot: per-guild
command lists (slash commands that reply with a random option), bot
messages into channels, and member reports.

Package layout::

    mira/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Field limits shared by API, client and bot
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models
    ├── services/
    │   ├── admin_service.py    # Audit-logged command list mutations
    │   ├── report_service.py   # Report filing + moderation
    │   ├── channel_service.py  # Guild channel sync + text channel listing
    │   ├── setup_service.py    # Guild snapshot + bot heartbeat
    │   └── speak_service.py    # Bot messages via the Discord REST API
    ├── api/
    │   ├── main.py        # FastAPI app
    │   ├── auth.py        # Discord OAuth2 → JWT
    │   └── routes/        # Command lists, Discord, Mira, reports
    ├── client/            # Typed HTTP client (CommandList, Discord, Mira)
    ├── dashboard/         # Page flows: command list editor, speak form
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        └── cogs/
            ├── command_lists.py  # Dynamic random-reply slash commands
            ├── reports.py        # /report
            └── tasks.py          # Heartbeat + command refresh loops
"""

__version__ = "0.1.0"
