"""Binary-search discovery of a chapter's page count.

Used for viewers that show a single image whose URL ends in
``<index>.<extension>`` but never state how many pages exist.
"""

from __future__ import annotations

from typing import Mapping

import structlog

from mangacrawl.domain.ports import HttpTransportPort

log = structlog.get_logger(__name__)

DEFAULT_UPPER_BOUND = 500


def page_image_url(url_template: str, index: int, extension: str) -> str:
    """Replace everything after the template's last ``/`` with ``index.extension``."""
    head, sep, _ = url_template.rpartition("/")
    return f"{head}{sep}{index}.{extension}"


class PageCountProber:
    """Finds the last existing page index with HEAD requests.

    Assumes existence is monotonic: pages ``1..n`` exist and nothing after
    ``n`` does. A 404 shrinks the upper bound, any other status raises the
    lower bound. Transport errors propagate and abort the whole probe.
    """

    def __init__(
        self,
        transport: HttpTransportPort,
        *,
        upper_bound: int = DEFAULT_UPPER_BOUND,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._transport = transport
        self._upper_bound = upper_bound
        self._headers = dict(headers or {})

    async def probe_last_page(self, url_template: str, extension: str) -> int:
        """Return the last valid page index, 0 if page 1 is missing."""
        lower = 1
        upper = self._upper_bound
        probes = 0

        while lower <= upper:
            midpoint = lower + (upper - lower) // 2
            url = page_image_url(url_template, midpoint, extension)
            resp = await self._transport.send("HEAD", url, headers=self._headers)
            probes += 1

            if resp.status == 404:
                upper = midpoint - 1
            else:
                lower = midpoint + 1

        log.debug(
            "page_count_probed", template=url_template, pages=lower - 1, probes=probes
        )
        return lower - 1
