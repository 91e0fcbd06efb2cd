"""
mira.dashboard.ui — What a page flow needs from its host
=========================================================

Page flows never render anything themselves.  They report outcomes
through a :class:`DashboardUi`: move to another route, show a blocking
message, or ask a yes/no question.
"""

from __future__ import annotations

from typing import Protocol

SUBMIT_ERROR = "An error occurred when submitting the form."
DELETE_ERROR = "An error occurred when deleting the command list."
DELETE_CONFIRM = "Are you sure you want to delete?"
SPEAK_SENT = "Message has been sent!"


class DashboardUi(Protocol):
    def navigate(self, route: str) -> None: ...

    def alert(self, message: str) -> None: ...

    def confirm(self, message: str) -> bool: ...
