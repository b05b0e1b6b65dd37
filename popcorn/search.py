# popcorn/search.py
import asyncio
import logging
from typing import Callable, List, Optional

from popcorn.models import MovieSummary, MIN_QUERY_LENGTH
from popcorn.omdb import FetchError

logger = logging.getLogger(__name__)


class CancelToken:
    """Issued per request; a request may only commit state while its token is live."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


async def wait_latest(task: Optional[asyncio.Task], current: Callable[[], Optional[asyncio.Task]]) -> None:
    """Wait until the task returned by `current` has finished, following supersessions."""
    while task is not None and not task.done():
        await asyncio.wait({task})
        task = current()


class SearchController:
    """
    Query-driven search state.

    ``set_query`` is synchronous and must be called with a running event
    loop; the request itself runs as a task. ``results``, ``is_loading`` and
    ``error`` are only ever written by the newest request.
    """

    def __init__(self, client, on_query_change: Optional[Callable[[], None]] = None):
        self.client = client
        self.on_query_change = on_query_change
        self.query = ""
        self.results: List[MovieSummary] = []
        self.is_loading = False
        self.error = ""
        self._token: Optional[CancelToken] = None
        self._task: Optional[asyncio.Task] = None

    def set_query(self, query: str) -> None:
        if query == self.query:
            return
        self.query = query
        self._cancel()

        if len(query) < MIN_QUERY_LENGTH:
            self.results = []
            self.error = ""
            self.is_loading = False
            return

        if self.on_query_change:
            self.on_query_change()
        token = CancelToken()
        self._token = token
        self.is_loading = True
        self.error = ""
        self._task = asyncio.get_running_loop().create_task(self._fetch(query, token))

    async def _fetch(self, query: str, token: CancelToken) -> None:
        try:
            results = await asyncio.to_thread(self.client.search, query)
            if token.cancelled:
                logger.debug("dropping late results for %r", query)
                return
            self.results = results
            self.error = ""
        except FetchError as e:
            if not token.cancelled:
                logger.warning("search %r failed: %s", query, e)
                self.error = str(e)
        finally:
            if not token.cancelled:
                self.is_loading = False

    def _cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("cancelled in-flight search")
        self._token = None
        self._task = None

    async def settle(self) -> None:
        """Wait for the active request, if any, to reach a terminal state."""
        await wait_latest(self._task, lambda: self._task)

    def close(self) -> None:
        self._cancel()
        self.is_loading = False
