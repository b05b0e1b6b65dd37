# popcorn/omdb.py
import logging
from typing import List, Optional

import requests

from popcorn.models import MovieSummary, MovieDetail

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.omdbapi.com/"

# Exceptions
class FetchError(Exception):
    """Raised when the movie API cannot be reached or answers with a failure."""
    def __init__(self, message: str = "Something went wrong with fetching movies"):
        super().__init__(message)

class MovieNotFoundError(FetchError):
    """Raised when the API answers Response=False (no matches)."""
    def __init__(self, message: str = "Movie not found"):
        super().__init__(message)


class OmdbClient:
    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, params: dict) -> dict:
        try:
            r = self.session.get(self.base_url, params={"apikey": self.api_key, **params}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("OMDb request failed: %s", e)
            raise FetchError() from e
        if not r.ok:
            logger.warning("OMDb answered status=%s", r.status_code)
            raise FetchError()
        try:
            data = r.json()
        except ValueError as e:
            raise FetchError() from e
        if not isinstance(data, dict):
            raise FetchError()
        return data

    def search(self, query: str) -> List[MovieSummary]:
        """Search titles by free text (the `s` parameter)."""
        data = self._get({"s": query})
        if data.get("Response") == "False":
            logger.debug("search %r: %s", query, data.get("Error"))
            raise MovieNotFoundError()
        try:
            results = [MovieSummary.from_api(item) for item in data.get("Search") or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise FetchError() from e
        if not results:
            raise MovieNotFoundError()
        logger.debug("search %r returned %d results", query, len(results))
        return results

    def get_movie(self, imdb_id: str) -> MovieDetail:
        """Fetch one title by IMDb id (the `i` parameter)."""
        data = self._get({"i": imdb_id})
        if data.get("Response") == "False":
            raise MovieNotFoundError()
        return MovieDetail.from_api(data, imdb_id=imdb_id)
