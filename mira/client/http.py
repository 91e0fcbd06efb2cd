"""
mira.client.http — Shared HTTP plumbing for the dashboard client
=================================================================

One :class:`ApiClient` per dashboard session; the resource wrappers
(:mod:`mira.client.command_list`, :mod:`mira.client.discord_api`,
:mod:`mira.client.mira_api`, :mod:`mira.client.reports`) all issue their
requests through it.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"


class ApiError(RuntimeError):
    """The dashboard API answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: Any = None) -> None:
        super().__init__(f"API request failed with HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def api_base_url() -> str:
    return os.getenv("MIRA_API_URL", DEFAULT_API_URL).rstrip("/")


def _detail(resp: httpx.Response) -> Any:
    try:
        return resp.json().get("detail")
    except (ValueError, AttributeError):
        return resp.text or None


class ApiClient:
    """Thin async wrapper around :class:`httpx.AsyncClient`.

    Usage::

        async with ApiClient() as api:
            lists = await CommandList(api).list_command_lists(token)
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or api_base_url(),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: Any = None,
        params: dict | None = None,
    ) -> httpx.Response:
        """Send one request; transport errors propagate as ``httpx.HTTPError``."""
        headers = {"Authorization": f"Bearer {token}"} if token else None
        resp = await self._client.request(
            method, path, headers=headers, json=json, params=params
        )
        logger.debug("%s %s → %d", method, path, resp.status_code)
        return resp

    async def get_json(
        self, path: str, *, token: str | None = None, params: dict | None = None
    ) -> Any:
        """GET *path* and decode the JSON body, raising :class:`ApiError` on failure."""
        resp = await self.request("GET", path, token=token, params=params)
        if not resp.is_success:
            raise ApiError(resp.status_code, _detail(resp))
        return resp.json()

    async def succeeded(
        self, method: str, path: str, *, token: str | None = None, json: Any = None
    ) -> bool:
        """Send a mutation and report whether the API accepted it."""
        resp = await self.request(method, path, token=token, json=json)
        if not resp.is_success:
            logger.warning(
                "%s %s rejected: %d %s", method, path, resp.status_code, _detail(resp)
            )
        return resp.is_success
