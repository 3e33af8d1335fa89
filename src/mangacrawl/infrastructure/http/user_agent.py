"""One-shot User-Agent selection from a remote UA list.

Some sites refuse (403) anything that does not look like a desktop
Chromium browser. The UA list is fetched once per process; the outcome,
success or failure, is kept for the rest of the process.
"""

from __future__ import annotations

import asyncio
import random
from typing import Callable, Sequence

import httpx
import structlog

log = structlog.get_logger(__name__)

DEFAULT_UA_LIST_URL = "https://tachiyomiorg.github.io/user-agents/user-agents.json"


class UserAgentRotator:
    """Lazily picks one User-Agent and memoizes it (or its absence).

    The bootstrap request goes through *client* directly, which must not be
    the rate-limited site client.

    Args:
        client: httpx client used for the single bootstrap request.
        url: Location of a JSON document mapping device classes to UA lists.
        device: Device class to pick from.
        browser: Case-insensitive substring a UA must contain.
        chooser: Picks one UA from the filtered pool.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = DEFAULT_UA_LIST_URL,
        *,
        device: str = "desktop",
        browser: str = "chrome",
        chooser: Callable[[Sequence[str]], str] = random.choice,
    ) -> None:
        self._client = client
        self._url = url
        self._device = device
        self._browser = browser.lower()
        self._chooser = chooser
        self._lock = asyncio.Lock()
        self._attempted = False
        self._user_agent: str | None = None

    @property
    def attempted(self) -> bool:
        return self._attempted

    async def get(self) -> str | None:
        """Return the selected User-Agent, or ``None`` to keep the default."""
        if self._attempted:
            return self._user_agent

        async with self._lock:
            if not self._attempted:
                try:
                    self._user_agent = await self._bootstrap()
                finally:
                    self._attempted = True
        return self._user_agent

    async def _bootstrap(self) -> str | None:
        try:
            resp = await self._client.get(self._url)
        except httpx.HTTPError as exc:
            log.warning("user_agent_list_unreachable", url=self._url, error=str(exc))
            return None

        if not resp.is_success:
            log.warning(
                "user_agent_list_http_error", url=self._url, status=resp.status_code
            )
            return None

        try:
            data = resp.json()
        except ValueError:
            log.warning("user_agent_list_invalid_json", url=self._url)
            return None

        pool = data.get(self._device) if isinstance(data, dict) else None
        candidates = [
            ua
            for ua in (pool or [])
            if isinstance(ua, str) and self._browser in ua.lower()
        ]
        if not candidates:
            log.warning(
                "user_agent_pool_empty", device=self._device, browser=self._browser
            )
            return None

        user_agent = self._chooser(candidates)
        log.info("user_agent_selected", user_agent=user_agent)
        return user_agent
