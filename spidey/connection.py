"""Long-lived paginated polling against one crawler's data endpoint.

A PollingConnection fetches one page, hands its results to the registered
handler, waits a fixed interval, then follows the page's ``meta.next``
locator. When a page carries no locator, the following request goes back to
the default endpoint, so pagination restarts from the first page instead of
stopping. Whether the service intends that wrap-around or expects clients to
stop is not documented; the loop keeps it and logs each restart.

The loop only ends when ``stop()`` is called, when the task running it is
cancelled, or when a request, a parse, or a handler raises.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlencode, urljoin

from pydantic import ValidationError

from spidey.constants import DATA_PATH_TEMPLATE, POLL_INTERVAL_SECONDS
from spidey.schemas import DataPage
from spidey.utils.http_client import ParseError, SpideyError, get_json
from spidey.utils.logging import connection_var

logger = logging.getLogger(__name__)

ResultHandler = Callable[[list[dict[str, Any]]], Awaitable[Any] | Any]
ErrorListener = Callable[[dict[str, Any]], Any]


def connection_name(crawler_id: int | str, parser_id: int | str | None = None) -> str:
    """Registry key for a crawler, or a crawler/parser pair."""
    name = f"s{crawler_id}"
    if parser_id:
        name += f"s{parser_id}"
    return name


def data_endpoint(host: str, crawler_id: int | str, parser_id: int | str | None = None) -> str:
    url = host.rstrip("/") + DATA_PATH_TEMPLATE.format(crawler_id=crawler_id)
    if parser_id:
        url += "?" + urlencode({"parser_id": parser_id})
    return url


class PollingConnection:
    def __init__(
        self,
        host: str,
        token: str,
        crawler_id: int | str,
        parser_id: int | str | None = None,
        *,
        name: str | None = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self.host = host
        self.token = token
        self.crawler_id = crawler_id
        self.parser_id = parser_id
        self.name = name or connection_name(crawler_id, parser_id)
        self.url = data_endpoint(host, crawler_id, parser_id)
        self.poll_interval = poll_interval
        self.page_count = 0

        self._result_handler: ResultHandler | None = None
        self._error_listeners: list[ErrorListener] = []
        self._stop_event = asyncio.Event()
        self._running = False

    def __repr__(self) -> str:
        return f"PollingConnection(name={self.name!r}, url={self.url!r})"

    @property
    def is_running(self) -> bool:
        return self._running

    def on_fetch_complete(self, fn: ResultHandler) -> "PollingConnection":
        """Register the page handler, replacing any previous one."""
        self._result_handler = fn
        return self

    def on_error(self, fn: ErrorListener) -> "PollingConnection":
        """Subscribe to application errors reported in page bodies."""
        self._error_listeners.append(fn)
        return self

    def stop(self) -> None:
        """Ask the running loop to exit after its current step.

        Calling this before the loop starts makes the next ``fetch`` return
        without issuing a request.
        """
        self._stop_event.set()

    def start(self, url: str | None = None) -> asyncio.Task[None]:
        """Run ``fetch`` as a background task.

        Await the returned task (or add a done callback) to observe transport
        and parse failures; otherwise they end the loop unnoticed.
        """
        return asyncio.create_task(self.fetch(url), name=f"spidey-poll-{self.name}")

    async def fetch(self, url: str | None = None) -> None:
        """Poll pages until stopped, starting at ``url`` or the default endpoint."""
        if self._running:
            raise RuntimeError(f"Connection {self.name} is already polling")

        self._running = True
        ctx_token = connection_var.set(self.name)
        target = url
        logger.info("Polling started at %s", self._resolve(target))
        try:
            while not self._stop_event.is_set():
                target = await self._poll_once(target)
                await self._wait()
            logger.info("Polling stopped after %d pages", self.page_count)
        except SpideyError:
            logger.exception("Polling aborted after %d pages", self.page_count)
            raise
        finally:
            self._running = False
            self._stop_event.clear()
            connection_var.reset(ctx_token)

    def _resolve(self, url: str | None) -> str:
        if not url:
            return self.url
        return urljoin(self.url, url)

    async def _poll_once(self, url: str | None) -> str | None:
        target = self._resolve(url)
        logger.debug("Fetching %s", target)
        body = await get_json(target, headers={"token": self.token})
        page = self._parse_page(target, body)

        if page.has_error:
            self._emit_error(body)

        await self._dispatch(page.results)
        self.page_count += 1

        next_page = page.next_page
        if next_page is None:
            logger.info("No next page after %s, restarting from %s", target, self.url)
        return next_page

    @staticmethod
    def _parse_page(url: str, body: Any) -> DataPage:
        if not isinstance(body, dict):
            raise ParseError(url, f"expected a JSON object, got {type(body).__name__}")
        try:
            return DataPage.model_validate(body)
        except ValidationError as exc:
            raise ParseError(url, str(exc)) from exc

    def _emit_error(self, body: dict[str, Any]) -> None:
        if not self._error_listeners:
            logger.warning("Unhandled application error: %s", body.get("error"))
            return
        for listener in list(self._error_listeners):
            listener(body)

    async def _dispatch(self, results: list[dict[str, Any]]) -> None:
        if self._result_handler is None:
            logger.debug("No result handler registered, dropping %d results", len(results))
            return
        outcome = self._result_handler(results)
        if inspect.isawaitable(outcome):
            await outcome

    async def _wait(self) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass
