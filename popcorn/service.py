# popcorn/service.py
from typing import List, Optional
from popcorn.models import MovieDetail, WatchedRecord
from popcorn.persisted import WatchedStore
from popcorn.search import SearchController
from popcorn.details import DetailFetcher, TitleSurface
import logging

logger = logging.getLogger(__name__)

# Exceptions
class ValidationError(Exception):
    """Raised when input or business validation fails."""
    pass

class NotFoundError(Exception):
    """Raised when an entity is not found."""
    pass

def average(values: List[Optional[float]]) -> float:
    """Mean of the non-None values; 0.0 for an empty list."""
    present = [v for v in values if v is not None]
    if not present:
        return 0.0
    return sum(present) / len(present)

class PopcornService:
    """
    Business logic for the watched list.
    The service expects an OMDb client (OmdbClient or a test double) and a
    WatchedStore over any key-value storage.
    """

    def __init__(self, client, watched: WatchedStore):
        """
        Initialize service with a movie client and a watched store (injected).
        """
        self.client = client
        self.watched = watched
        logger.debug("PopcornService initialized with client %s", type(client).__name__)

    # ---- Controllers ----
    def search_controller(self, on_query_change=None) -> SearchController:
        return SearchController(self.client, on_query_change=on_query_change)

    def detail_fetcher(self, title: Optional[TitleSurface] = None) -> DetailFetcher:
        return DetailFetcher(self.client, title=title)

    # ---- Watched ----
    def add_watched(self, record: WatchedRecord) -> WatchedRecord:
        """
        Add a rated movie. Validations:
        - imdb_id required
        - user_rating must be set, 1-10
        - cannot add the same imdb_id twice
        """
        if not record.imdb_id:
            raise ValidationError("imdb_id required")
        if record.user_rating is None or not (1 <= record.user_rating <= 10):
            logger.warning("add_watched: invalid rating %r for %s", record.user_rating, record.imdb_id)
            raise ValidationError("user_rating must be 1-10")
        if record.imdb_id in self.watched:
            logger.warning("Attempt to add duplicate watched entry imdb_id=%s", record.imdb_id)
            raise ValidationError("This movie is already in your watched list")
        self.watched.add(record)
        logger.info("Added watched imdb_id=%s rating=%s", record.imdb_id, record.user_rating)
        return record

    def add_from_detail(self, detail: MovieDetail, user_rating: Optional[int],
                        count_rating_decisions: int = 0) -> WatchedRecord:
        if count_rating_decisions < 0:
            raise ValidationError("count_rating_decisions must be >= 0")
        record = WatchedRecord(
            imdb_id=detail.imdb_id,
            title=detail.title,
            year=detail.year,
            poster=detail.poster,
            imdb_rating=detail.imdb_rating,
            runtime=detail.runtime,
            user_rating=user_rating,
            count_rating_decisions=count_rating_decisions,
        )
        return self.add_watched(record)

    def delete_watched(self, imdb_id: str) -> None:
        self.watched.remove(imdb_id)
        logger.info("Deleted watched imdb_id=%s", imdb_id)

    def list_watched(self) -> List[WatchedRecord]:
        return self.watched.items

    def get_watched(self, imdb_id: str) -> WatchedRecord:
        w = self.watched.get(imdb_id)
        if not w:
            logger.debug("get_watched: %s not found", imdb_id)
            raise NotFoundError("movie not in watched list")
        return w

    def is_watched(self, imdb_id: str) -> bool:
        return imdb_id in self.watched

    def summary(self) -> dict:
        """Count and averages shown above the watched list."""
        watched = self.watched.items
        return {
            "count": len(watched),
            "avg_imdb_rating": average([w.imdb_rating for w in watched]),
            "avg_user_rating": average([w.user_rating for w in watched]),
            "avg_runtime": average([w.runtime for w in watched]),
        }

    # ---- Export ----
    def export_watched(self) -> List[dict]:
        """
        Export the watched list as a list of dicts ready for JSON or CSV.
        Keys are those of the persisted snapshot.
        """
        out = [w.to_dict() for w in self.watched.items]
        logger.info("Exported %d watched entries", len(out))
        return out
