"""Name-keyed store of polling connections.

A name maps to at most one connection for the registry's lifetime. Lookups by
an existing name return the stored connection even when the caller asked for
a different token or crawler: reuse-by-name wins over resource identity.
Entries are never removed.
"""

from collections.abc import Callable, Iterator

from spidey.connection import PollingConnection


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: dict[str, PollingConnection] = {}

    def get(self, name: str) -> PollingConnection | None:
        return self._connections.get(name)

    def get_or_create(self, name: str, factory: Callable[[], PollingConnection]) -> PollingConnection:
        # No lock: mutated only from the event loop thread and never across an await.
        connection = self._connections.get(name)
        if connection is None:
            connection = factory()
            self._connections[name] = connection
        return connection

    def names(self) -> list[str]:
        return list(self._connections)

    def __contains__(self, name: object) -> bool:
        return name in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[PollingConnection]:
        return iter(list(self._connections.values()))
