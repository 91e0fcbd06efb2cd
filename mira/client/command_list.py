"""
mira.client.command_list — Command list endpoints
==================================================
"""

from __future__ import annotations

from mira.client.http import ApiClient
from mira.client.types import CommandListData


class CommandList:
    """Client for ``/command-lists``."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def list_command_lists(
        self, token: str, guild_id: str | int | None = None
    ) -> list[CommandListData]:
        params = {"guild_id": str(guild_id)} if guild_id else None
        rows = await self.api.get_json("/command-lists", token=token, params=params)
        return [CommandListData.from_json(r) for r in rows]

    async def get_command_list(self, token: str, command_list_id: int) -> CommandListData:
        """Fetch one command list; raises :class:`~mira.client.http.ApiError` if missing."""
        data = await self.api.get_json(f"/command-lists/{command_list_id}", token=token)
        return CommandListData.from_json(data)

    async def create_command_list(self, token: str, data: dict) -> bool:
        return await self.api.succeeded("POST", "/command-lists", token=token, json=data)

    async def update_command_list(self, token: str, data: dict, command_list_id: int) -> bool:
        """PUT ``{name, description, options}``; True when the API accepted it."""
        return await self.api.succeeded(
            "PUT", f"/command-lists/{command_list_id}", token=token, json=data
        )

    async def delete_command_list(self, token: str, command_list_id: int) -> bool:
        return await self.api.succeeded(
            "DELETE", f"/command-lists/{command_list_id}", token=token
        )
