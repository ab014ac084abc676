import asyncio
import json
import logging
from typing import Any

import aiohttp

from spidey.utils.http_pool import get_session

logger = logging.getLogger(__name__)


class SpideyError(Exception):
    pass


class TransportError(SpideyError):
    """The request never produced a response body."""

    def __init__(self, method: str, url: str, reason: str) -> None:
        super().__init__(f"{method} {url} failed: {reason}")
        self.method = method
        self.url = url


class ParseError(SpideyError):
    """A response body that could not be decoded into the expected shape."""

    def __init__(self, url: str, reason: str, status: int | None = None, text: str = "") -> None:
        where = f"{url} (HTTP {status})" if status is not None else url
        super().__init__(f"Unparseable response from {where}: {reason}")
        self.url = url
        self.status = status
        self.text = text


def merge_options(target: dict[str, Any], *sources: dict[str, Any] | None) -> dict[str, Any]:
    """Shallow-merge sources into target, later sources winning."""
    for source in sources:
        if source:
            target.update(source)
    return target


async def request_text(
    method: str,
    url: str,
    options: dict[str, Any] | None = None,
) -> tuple[int, str]:
    session = await get_session()
    opts = merge_options({}, options)
    try:
        async with session.request(method.upper(), url, **opts) as resp:
            text = await resp.text()
            status = resp.status
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise TransportError(method.upper(), url, str(exc) or type(exc).__name__) from exc

    if status >= 400:
        logger.warning("%s %s returned HTTP %d", method.upper(), url, status)
    return status, text


async def get_json(url: str, headers: dict[str, str] | None = None) -> Any:
    """GET a URL and decode its body as JSON.

    The status code is not interpreted: the service reports application
    errors inside the body, so error statuses are parsed like any other.
    """
    status, text = await request_text("GET", url, {"headers": headers or {}})
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(url, str(exc), status=status, text=text) from exc
