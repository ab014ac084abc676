"""Shared HTTP session for TCP connection reuse.

Every polling loop issues one request per page for as long as it runs, so a
session per request would pay a TCP/TLS handshake every two seconds per loop.
All connections and token calls share one lazily-created session instead.

Timeout: no total timeout is imposed unless SPIDEY_HTTP_TIMEOUT is set, in
which case aiohttp's default is replaced by that many seconds.
"""

import os

from aiohttp import ClientSession, ClientTimeout, TCPConnector

from spidey.constants import HTTP_DNS_CACHE_SECONDS, HTTP_POOL_LIMIT

_session: ClientSession | None = None


def _timeout_from_env() -> ClientTimeout | None:
    raw = os.environ.get("SPIDEY_HTTP_TIMEOUT")
    if not raw:
        return None
    return ClientTimeout(total=float(raw))


async def get_session() -> ClientSession:
    """Get or create the shared HTTP session.

    Safe for asyncio (single event loop).
    Session is lazily created on first call.
    """
    global _session
    if _session is None or _session.closed:
        connector = TCPConnector(limit=HTTP_POOL_LIMIT, ttl_dns_cache=HTTP_DNS_CACHE_SECONDS)
        timeout = _timeout_from_env()
        if timeout is None:
            _session = ClientSession(connector=connector)
        else:
            _session = ClientSession(connector=connector, timeout=timeout)
    return _session


async def close_session() -> None:
    """Close the shared HTTP session.

    Call this during application shutdown to release resources.
    """
    global _session
    if _session is not None and not _session.closed:
        await _session.close()
    _session = None
