# popcorn/session.py
import logging
from typing import Optional

from popcorn.details import TitleSurface
from popcorn.keys import KeyBinder, KeyEventBus
from popcorn.models import WatchedRecord
from popcorn.service import PopcornService, ValidationError

logger = logging.getLogger(__name__)


class PopcornSession:
    """
    One user's running app: search box, open detail, watched list and the
    keyboard shortcuts wired between them. Methods that start requests
    (type_query, select_movie, Enter) need a running event loop.
    """

    def __init__(self, service: PopcornService, bus: Optional[KeyEventBus] = None,
                 title: Optional[TitleSurface] = None):
        self.service = service
        self.bus = bus or KeyEventBus()
        self.title = title or TitleSurface()
        self.search = service.search_controller(on_query_change=self.close_movie)
        self.details = service.detail_fetcher(title=self.title)
        self.search_focused = False

        self._enter = KeyBinder(self.bus, "Enter", self._focus_search).bind()
        # bound only while a detail is open
        self._escape = KeyBinder(self.bus, "Escape", self.close_movie)

    # ---- Search ----
    def type_query(self, query: str) -> None:
        self.search.set_query(query)

    def _focus_search(self) -> None:
        if self.search_focused:
            return
        self.search_focused = True
        self.search.set_query("")

    def blur_search(self) -> None:
        self.search_focused = False

    def press(self, code: str) -> None:
        self.bus.dispatch(code)

    # ---- Details ----
    @property
    def selected_id(self) -> Optional[str]:
        return self.details.selected_id

    def select_movie(self, imdb_id: str) -> None:
        """Open a movie; selecting the open one again closes it."""
        if imdb_id == self.details.selected_id:
            self.close_movie()
            return
        self.details.select(imdb_id)
        self._escape.bind()

    def close_movie(self) -> None:
        self.details.close()
        self._escape.unbind()

    def rate(self, rating: int) -> None:
        self.details.rate(rating)

    # ---- Watched ----
    def add_watched(self) -> WatchedRecord:
        record = self.details.to_watched()
        if record is None:
            raise ValidationError("no movie loaded")
        self.service.add_watched(record)
        self.close_movie()
        return record

    def delete_watched(self, imdb_id: str) -> None:
        self.service.delete_watched(imdb_id)

    @property
    def watched(self):
        return self.service.list_watched()

    def close(self) -> None:
        self.search.close()
        self.close_movie()
        self._enter.unbind()
        logger.debug("session closed")
