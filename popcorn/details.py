# popcorn/details.py
import asyncio
import logging
from typing import Optional

from popcorn.models import MovieDetail, WatchedRecord
from popcorn.omdb import FetchError
from popcorn.search import CancelToken, wait_latest

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "usePopcorn"


class TitleSurface:
    """The page/window title; set while a detail is open, restored on exit."""

    def __init__(self, default: str = DEFAULT_TITLE):
        self.default = default
        self.value = default

    def set(self, title: str) -> None:
        self.value = title

    def reset(self) -> None:
        self.value = self.default


class DetailFetcher:
    """
    Loads one MovieDetail for the selected id and tracks the user's rating
    decisions for it. Like SearchController, ``select`` needs a running loop.
    """

    def __init__(self, client, title: Optional[TitleSurface] = None):
        self.client = client
        self.title = title or TitleSurface()
        self.selected_id: Optional[str] = None
        self.movie: Optional[MovieDetail] = None
        self.is_loading = False
        self.error = ""
        self.user_rating: Optional[int] = None
        self.count_rating_decisions = 0
        self._token: Optional[CancelToken] = None
        self._task: Optional[asyncio.Task] = None

    def select(self, imdb_id: str) -> None:
        self._teardown()
        self.selected_id = imdb_id
        token = CancelToken()
        self._token = token
        self.is_loading = True
        self._task = asyncio.get_running_loop().create_task(self._fetch(imdb_id, token))

    async def _fetch(self, imdb_id: str, token: CancelToken) -> None:
        try:
            movie = await asyncio.to_thread(self.client.get_movie, imdb_id)
            if token.cancelled:
                return
            self.movie = movie
            if movie.title:
                self.title.set(f"Movie | {movie.title}")
        except FetchError as e:
            if not token.cancelled:
                logger.warning("detail fetch %s failed: %s", imdb_id, e)
                self.error = str(e)
        finally:
            if not token.cancelled:
                self.is_loading = False

    def rate(self, rating: int) -> None:
        if rating and rating != self.user_rating:
            self.count_rating_decisions += 1
        self.user_rating = rating

    def restore_rating(self, user_rating: Optional[int], count_rating_decisions: int) -> None:
        """Resume rating state kept between requests for the selected movie."""
        self.user_rating = user_rating
        self.count_rating_decisions = count_rating_decisions

    def to_watched(self) -> Optional[WatchedRecord]:
        if self.movie is None:
            return None
        m = self.movie
        return WatchedRecord(
            imdb_id=self.selected_id or m.imdb_id,
            title=m.title,
            year=m.year,
            poster=m.poster,
            imdb_rating=m.imdb_rating,
            runtime=m.runtime,
            user_rating=self.user_rating,
            count_rating_decisions=self.count_rating_decisions,
        )

    async def settle(self) -> None:
        await wait_latest(self._task, lambda: self._task)

    def _teardown(self) -> None:
        if self._token is not None:
            self._token.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._token = None
        self._task = None
        self.title.reset()
        self.selected_id = None
        self.movie = None
        self.error = ""
        self.is_loading = False
        self.user_rating = None
        self.count_rating_decisions = 0

    def close(self) -> None:
        if self.selected_id is not None:
            logger.debug("closing detail %s", self.selected_id)
        self._teardown()

    @property
    def is_open(self) -> bool:
        return self.selected_id is not None
