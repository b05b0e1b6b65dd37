# popcorn/models.py
from dataclasses import dataclass, asdict
from typing import Optional

MIN_QUERY_LENGTH = 3

def parse_runtime(raw: Optional[str]) -> Optional[int]:
    """'142 min' -> 142. None for 'N/A' or anything unparseable."""
    if not raw:
        return None
    head = str(raw).split(" ")[0]
    try:
        return int(head)
    except ValueError:
        return None

def parse_rating(raw) -> Optional[float]:
    if raw in (None, "", "N/A"):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None

@dataclass(frozen=True)
class MovieSummary:
    imdb_id: str
    title: str
    year: str
    poster: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "MovieSummary":
        return cls(
            imdb_id=data["imdbID"],
            title=data.get("Title", ""),
            year=data.get("Year", ""),
            poster=data.get("Poster", ""),
        )

@dataclass(frozen=True)
class MovieDetail:
    imdb_id: str
    title: str
    year: str
    poster: str = ""
    released: str = ""
    runtime: Optional[int] = None  # minutes
    genre: str = ""
    plot: str = ""
    actors: str = ""
    director: str = ""
    imdb_rating: Optional[float] = None

    @classmethod
    def from_api(cls, data: dict, imdb_id: Optional[str] = None) -> "MovieDetail":
        return cls(
            imdb_id=imdb_id or data.get("imdbID", ""),
            title=data.get("Title", ""),
            year=data.get("Year", ""),
            poster=data.get("Poster", ""),
            released=data.get("Released", ""),
            runtime=parse_runtime(data.get("Runtime")),
            genre=data.get("Genre", ""),
            plot=data.get("Plot", ""),
            actors=data.get("Actors", ""),
            director=data.get("Director", ""),
            imdb_rating=parse_rating(data.get("imdbRating")),
        )

# persisted key -> attribute; keys match what the browser app wrote to localStorage
_WATCHED_KEYS = {
    "imdbID": "imdb_id",
    "title": "title",
    "year": "year",
    "poster": "poster",
    "imdbRating": "imdb_rating",
    "runtime": "runtime",
    "userRating": "user_rating",
    "countRatingDecisions": "count_rating_decisions",
}

_NUMERIC_FIELDS = ("imdb_rating", "runtime", "user_rating")

@dataclass
class WatchedRecord:
    imdb_id: str
    title: str
    year: str = ""
    poster: str = ""
    imdb_rating: Optional[float] = None
    runtime: Optional[int] = None
    user_rating: Optional[int] = None  # 1-10, None -> unset
    count_rating_decisions: int = 0

    def to_dict(self) -> dict:
        values = asdict(self)
        return {key: values[attr] for key, attr in _WATCHED_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict) -> "WatchedRecord":
        """Raises TypeError when a field has the wrong type."""
        kwargs = {attr: data[key] for key, attr in _WATCHED_KEYS.items() if key in data}
        if not isinstance(kwargs.get("imdb_id"), str):
            raise TypeError("imdbID must be a string")
        for attr in _NUMERIC_FIELDS:
            v = kwargs.get(attr)
            if v is not None and (isinstance(v, bool) or not isinstance(v, (int, float))):
                raise TypeError(f"{attr} must be a number, got {type(v).__name__}")
        count = kwargs.get("count_rating_decisions", 0)
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError("countRatingDecisions must be an integer")
        return cls(**kwargs)
