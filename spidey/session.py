import logging
import os
import time
from typing import Any

from dotenv import load_dotenv

from spidey.connection import PollingConnection, connection_name
from spidey.constants import ACCESS_PATH, CIPHER_ALGORITHM, POLL_INTERVAL_SECONDS
from spidey.registry import ConnectionRegistry
from spidey.utils.cipher import build_handshake_hash
from spidey.utils.http_client import get_json

load_dotenv()

logger = logging.getLogger(__name__)


class Session:
    """Entry point: authenticates against the service and hands out polling connections.

    Each Session owns a ConnectionRegistry unless one is passed in. Passing
    the same registry to several Sessions makes them share connections by
    name, which is how a single process-wide registry is obtained.
    """

    algorithm = CIPHER_ALGORITHM

    def __init__(
        self,
        host: str,
        registry: ConnectionRegistry | None = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._host = host.rstrip("/")
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.poll_interval = poll_interval

    @classmethod
    def from_env(cls, registry: ConnectionRegistry | None = None) -> "Session":
        host = os.environ.get("SPIDEY_HOST")
        if not host:
            raise RuntimeError("SPIDEY_HOST environment variable is required")
        interval = os.environ.get("SPIDEY_POLL_INTERVAL")
        poll_interval = float(interval) if interval else POLL_INTERVAL_SECONDS
        return cls(host, registry=registry, poll_interval=poll_interval)

    @property
    def host(self) -> str:
        return self._host

    def __repr__(self) -> str:
        return f"Session(host={self._host!r}, connections={len(self.registry)})"

    async def get_token(self, key: str, secret: str) -> Any:
        """Exchange an application key/secret for an access token bundle.

        The secret never leaves the process: only a timestamped ciphertext
        derived from it is sent. The response is returned as decoded JSON
        without inspection.
        """
        time_ms = int(time.time() * 1000)
        headers = {
            "key": key,
            "hash": build_handshake_hash(key, secret, time_ms),
        }
        logger.info("Requesting access token for key %s", key)
        return await get_json(self._host + ACCESS_PATH, headers=headers)

    def create_data_connection(
        self,
        token: str,
        crawler_id: int | str,
        parser_id: int | str | None = None,
        name: str | None = None,
    ) -> PollingConnection:
        """Return the connection registered under ``name``, creating it if absent.

        ``name`` defaults to one derived from the crawler and parser ids. If a
        connection already exists under that name, it is returned as-is and
        this call's token and ids are ignored.
        """
        name = name or connection_name(crawler_id, parser_id)

        def factory() -> PollingConnection:
            logger.debug("Creating connection %s for crawler %s", name, crawler_id)
            return PollingConnection(
                self._host,
                token,
                crawler_id,
                parser_id,
                name=name,
                poll_interval=self.poll_interval,
            )

        return self.registry.get_or_create(name, factory)

    def get_data_client(self, name: str) -> PollingConnection | None:
        return self.registry.get(name)
