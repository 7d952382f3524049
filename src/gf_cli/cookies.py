"""Anti-bot cookie warmup for the cloud Forge.

The cloud API sits behind a DDoS-protection edge that rejects clients without
its session cookies. Visiting the main site once is enough to obtain them.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlsplit

import httpx

from .config import DEFAULT_HOST

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


def main_site_url(api_url: str) -> str:
    """Main-site URL to warm up from, or ``""`` when the host needs no priming.

    ``https://api.gitflic.ru`` -> ``https://gitflic.ru/``
    """
    host = urlsplit(api_url).netloc
    if host.startswith("api."):
        host = host[len("api.") :]
    if DEFAULT_HOST not in host:
        return ""
    return f"https://{host}/"


class CookieGate:
    """At-most-once cookie priming shared by every caller of one client."""

    def __init__(self, http: httpx.AsyncClient, api_url: str) -> None:
        self._http = http
        self._site_url = main_site_url(api_url)
        self._lock = asyncio.Lock()
        self._ready = False
        self.warmups = 0

    @property
    def ready(self) -> bool:
        return self._ready

    async def ensure_ready(self) -> None:
        """Prime the cookie jar. Failures are logged and swallowed."""
        if self._ready:
            return
        async with self._lock:
            if self._ready:
                return
            if not self._site_url:
                self._ready = True
                return
            try:
                resp = await self._http.get(
                    self._site_url,
                    headers={"User-Agent": BROWSER_USER_AGENT, "Accept": "text/html"},
                )
                await resp.aread()
            except httpx.TransportError as e:
                logger.debug("Cookie warmup failed: %s", e)
                return
            self.warmups += 1
            self._ready = True
            logger.debug("Warmed up DDoS Guard cookies from %s", self._site_url)

    async def reset(self) -> None:
        """Swap in a fresh cookie jar and re-arm the gate."""
        async with self._lock:
            self._http.cookies = httpx.Cookies()
            self._ready = False
            logger.debug("Cookie jar reset")
