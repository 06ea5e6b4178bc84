"""HTTP transport for JSON feeds."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pycitybikes._constants import USER_AGENT
from pycitybikes.exceptions import CityBikesFetchError, CityBikesParseError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the feed client.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, url: str) -> Any: ...


class HttpTransport:
    """GET JSON documents over an aiohttp session."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 30.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(self, url: str) -> Any:
        """Fetch *url* and decode the body as JSON.

        Raises
        ------
        CityBikesFetchError
            On network failure, timeout or a non-200 response.
        CityBikesParseError
            When the body is not valid JSON.
        """
        headers = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise CityBikesFetchError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except CityBikesFetchError:
            raise
        except TimeoutError as exc:
            raise CityBikesFetchError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise CityBikesFetchError(f"Request to {url} failed: {exc}", url=url) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise CityBikesParseError(f"Invalid JSON from {url}: {text[:200]}", url=url) from exc
