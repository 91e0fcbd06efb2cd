"""
mira.constants — Shared Constants
==================================

Field limits used by the API schemas, the dashboard flows and the bot
(mirroring Discord's own limits for slash commands and messages), plus
the command-name check and the channel ordering they share.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Command lists
# ---------------------------------------------------------------------------
COMMAND_NAME_MIN = 1
COMMAND_NAME_MAX = 32
COMMAND_DESCRIPTION_MIN = 1
COMMAND_DESCRIPTION_MAX = 100
COMMAND_OPTION_MAX = 2000

# Discord slash-command names: lowercase, digits, dash, underscore.
COMMAND_NAME_PATTERN = r"^[-_a-z0-9]{1,32}$"
_COMMAND_NAME_RE = re.compile(COMMAND_NAME_PATTERN)

# ---------------------------------------------------------------------------
# Speak
# ---------------------------------------------------------------------------
MESSAGE_MIN = 1
MESSAGE_MAX = 2000

# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
REPORT_DESCRIPTION_MAX = 1000

# ---------------------------------------------------------------------------
# Dashboard routes
# ---------------------------------------------------------------------------
COMMAND_LISTS_ROUTE = "/commands"


def is_valid_command_name(name: str) -> bool:
    """Return True if *name* can be registered as a slash command."""
    return bool(_COMMAND_NAME_RE.match(name))


def channel_sort_key(channel) -> tuple[str, str, int]:
    """Ascending-by-name channel ordering shared by the API and the client.

    Names compare case-insensitively; the exact name and then the id break
    ties so the order is total.  Works on any object with ``name``/``id``.
    """
    return (channel.name.casefold(), channel.name, int(channel.id))
