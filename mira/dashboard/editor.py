"""
mira.dashboard.editor — Command list create/edit flows
=======================================================

:class:`CommandListEditor` backs the ``/commands/{id}`` page and
:class:`CommandListCreator` the ``/commands/new`` page.  Both keep the
form fields locally, send the whole object on submit, and then either
navigate back to the listing or alert and leave the form as it was.

One request per form instance may be in flight; while ``is_submitting``
is set, further submit/delete calls return ``False`` without touching
the API.
"""

from __future__ import annotations

import logging

from mira.client.command_list import CommandList
from mira.client.types import CommandListData
from mira.constants import COMMAND_LISTS_ROUTE
from mira.dashboard.ui import DELETE_CONFIRM, DELETE_ERROR, SUBMIT_ERROR, DashboardUi

logger = logging.getLogger(__name__)


class CommandListForm:
    """Editable ``name`` / ``description`` / ``options`` fields."""

    def __init__(self) -> None:
        self.name = ""
        self.description = ""
        self.options: list[str] = []
        self.is_submitting = False

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.options):
            raise IndexError(
                f"Option index {index} out of range for {len(self.options)} options"
            )

    def add_option(self) -> None:
        """Append an empty option."""
        self.options = [*self.options, ""]

    def update_option(self, index: int, value: str) -> None:
        """Replace the option at *index*; every other option is untouched."""
        self._check_index(index)
        options = list(self.options)
        options[index] = value
        self.options = options

    def delete_option(self, index: int) -> None:
        """Remove exactly the option at *index*; later options shift left."""
        self._check_index(index)
        options = list(self.options)
        del options[index]
        self.options = options

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "options": list(self.options),
        }


class CommandListEditor(CommandListForm):
    """Edit or delete an existing command list."""

    def __init__(self, api: CommandList, ui: DashboardUi, token: str) -> None:
        super().__init__()
        self.api = api
        self.ui = ui
        self.token = token
        self.command_list: CommandListData | None = None
        self.error: Exception | None = None

    async def load(self, command_list_id: int) -> bool:
        """Fetch the list and mirror it into the form fields.

        On failure the error is kept on :attr:`error` for the page to show.
        """
        try:
            data = await self.api.get_command_list(self.token, command_list_id)
        except Exception as exc:
            logger.exception("Failed to load command list %s", command_list_id)
            self.error = exc
            return False

        self.error = None
        self.command_list = data
        self.name = data.name or ""
        self.description = data.description or ""
        self.options = list(data.options or [])
        return True

    def _loaded_id(self) -> int:
        if self.command_list is None or not self.command_list.id:
            raise RuntimeError("Command list ID not set.")
        return self.command_list.id

    async def submit(self) -> bool:
        """Save the form.  Navigates to the listing on success."""
        command_list_id = self._loaded_id()
        if self.is_submitting:
            return False

        self.is_submitting = True
        try:
            ok = await self.api.update_command_list(
                self.token, self.to_payload(), command_list_id
            )
        except Exception:
            logger.exception("Updating command list %d failed", command_list_id)
            ok = False
        finally:
            self.is_submitting = False

        if ok:
            self.ui.navigate(COMMAND_LISTS_ROUTE)
        else:
            self.ui.alert(SUBMIT_ERROR)
        return ok

    async def delete(self) -> bool:
        """Delete the list after confirmation.  Navigates to the listing on success."""
        command_list_id = self._loaded_id()
        if self.is_submitting or not self.ui.confirm(DELETE_CONFIRM):
            return False

        self.is_submitting = True
        try:
            ok = await self.api.delete_command_list(self.token, command_list_id)
        except Exception:
            logger.exception("Deleting command list %d failed", command_list_id)
            ok = False
        finally:
            self.is_submitting = False

        if ok:
            self.ui.navigate(COMMAND_LISTS_ROUTE)
        else:
            self.ui.alert(DELETE_ERROR)
        return ok


class CommandListCreator(CommandListForm):
    """Create a new command list for a guild."""

    def __init__(
        self,
        api: CommandList,
        ui: DashboardUi,
        token: str,
        guild_id: str | int | None = None,
    ) -> None:
        super().__init__()
        self.api = api
        self.ui = ui
        self.token = token
        self.guild_id = guild_id

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.guild_id:
            payload["guildId"] = str(self.guild_id)
        return payload

    async def submit(self) -> bool:
        if self.is_submitting:
            return False

        self.is_submitting = True
        try:
            ok = await self.api.create_command_list(self.token, self.to_payload())
        except Exception:
            logger.exception("Creating command list /%s failed", self.name)
            ok = False
        finally:
            self.is_submitting = False

        if ok:
            self.ui.navigate(COMMAND_LISTS_ROUTE)
        else:
            self.ui.alert(SUBMIT_ERROR)
        return ok
