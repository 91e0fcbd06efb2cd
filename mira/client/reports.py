"""
mira.client.reports — Report moderation endpoints
==================================================
"""

from __future__ import annotations

from mira.client.http import ApiClient
from mira.client.types import ReportData


class Reports:
    """Client for ``/reports``."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def list_reports(
        self, token: str, *, resolved: bool | None = None
    ) -> list[ReportData]:
        params = None if resolved is None else {"resolved": str(resolved).lower()}
        rows = await self.api.get_json("/reports", token=token, params=params)
        return [ReportData.from_json(r) for r in rows]

    async def set_resolved(self, token: str, report_id: int, resolved: bool = True) -> bool:
        return await self.api.succeeded(
            "PATCH", f"/reports/{report_id}", token=token, json={"resolved": resolved}
        )
