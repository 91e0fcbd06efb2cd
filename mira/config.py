"""
mira.config — YAML Configuration Loader
=========================================

Reads ``config.yaml`` for the non-secret settings shared by the bot and
the dashboard API (guild identity, admin role, report channel).  Secrets
(bot token, DB URL, JWT secret, OAuth credentials) stay in ``.env``.

Usage::

    from mira.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.bot_name)          # "Mira"
    print(cfg.guild_id)          # 1468816181854081229
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True, slots=True)
class MiraConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    bot_name: str

    # Discord
    guild_id: int  # Primary guild snowflake (default scope for the dashboard)

    # Dashboard
    dashboard_port: int

    # Admin role required for dashboard login
    admin_role_id: int

    # Optional
    report_channel_id: int | None = None  # Where /report posts moderator notices


def load_config(path: str | Path = "config.yaml") -> MiraConfig:
    """Read *path* and return a :class:`MiraConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    return MiraConfig(
        bot_name=raw.get("bot_name", "Mira"),
        guild_id=int(raw["guild_id"]),
        dashboard_port=int(raw.get("dashboard_port", 8000)),
        admin_role_id=int(raw["admin_role_id"]),
        report_channel_id=(
            int(raw["report_channel_id"]) if raw.get("report_channel_id") else None
        ),
    )
