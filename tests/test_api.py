import csv
import io
import json
import pytest
import run
from run import create_app
from popcorn.storage import InMemoryKeyValueStore
from popcorn.persisted import WatchedStore
from popcorn.service import PopcornService
from fakes import FakeClient, MATRIX_DETAIL

@pytest.fixture
def api_client(tmp_path, monkeypatch):
    """Flask test client backed by an in-memory store and a fake OMDb client."""
    monkeypatch.setitem(run.cfg, "database", str(tmp_path / "app.sqlite"))
    app = create_app()
    app.testing = True
    svc = PopcornService(FakeClient(), WatchedStore(InMemoryKeyValueStore()))
    app.config["SERVICE"] = svc
    with app.test_client() as client:
        yield client, svc

# ---------- pages ----------
def test_index_without_query(api_client):
    client, _ = api_client
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"<title>usePopcorn</title>" in resp.data
    assert b"Found <strong>0</strong> results" in resp.data

def test_index_search_lists_results(api_client):
    client, _ = api_client
    resp = client.get("/?q=the+matrix")
    assert resp.status_code == 200
    assert b"The Matrix Reloaded" in resp.data
    assert b"Found <strong>2</strong> results" in resp.data

def test_index_search_not_found(api_client):
    client, _ = api_client
    resp = client.get("/?q=xyz")
    assert b"Movie not found" in resp.data

def test_detail_page_sets_title(api_client):
    client, _ = api_client
    resp = client.get("/movies/tt0133093")
    assert resp.status_code == 200
    assert b"<title>Movie | The Matrix</title>" in resp.data
    assert b'name="rating"' in resp.data
    assert b"Add to list" not in resp.data

def test_detail_page_failure_shows_error(api_client):
    client, _ = api_client
    resp = client.get("/movies/tt-missing")
    assert resp.status_code == 200
    assert b"Movie not found" in resp.data
    assert b"<title>usePopcorn</title>" in resp.data

def test_rate_then_add_records_rating_decisions(api_client):
    client, svc = api_client
    client.get("/movies/tt0133093")
    client.post("/movies/tt0133093/rating", data={"rating": "7"})
    client.post("/movies/tt0133093/rating", data={"rating": "8"})
    page = client.post("/movies/tt0133093/rating", data={"rating": "8"}, follow_redirects=True)
    assert b"Your rating: 8" in page.data
    assert b"Add to list" in page.data

    # count comes from server-side state, never from the form
    resp = client.post("/movies/tt0133093/watched",
                       data={"user_rating": "3", "count_rating_decisions": "99"}, follow_redirects=True)
    assert b"Added to watched list" in resp.data
    w = svc.get_watched("tt0133093")
    assert w.user_rating == 8
    assert w.count_rating_decisions == 2
    assert w.runtime == 136

def test_opening_another_movie_resets_rating_count(api_client):
    client, svc = api_client
    client.get("/movies/tt0133093")
    client.post("/movies/tt0133093/rating", data={"rating": "5"})
    client.post("/movies/tt0133093/rating", data={"rating": "6"})
    client.get("/movies/tt1375666")
    client.post("/movies/tt1375666/rating", data={"rating": "9"})
    client.post("/movies/tt1375666/watched")
    w = svc.get_watched("tt1375666")
    assert w.user_rating == 9 and w.count_rating_decisions == 1

@pytest.mark.parametrize("bad", ["0", "11", "abc"])
def test_rate_out_of_range_flashes_error(api_client, bad):
    client, _ = api_client
    resp = client.post("/movies/tt0133093/rating", data={"rating": bad}, follow_redirects=True)
    assert b"Your rating" not in resp.data
    assert b"class=\"flash flash-danger\"" in resp.data

def test_add_and_delete_watched_via_ui(api_client):
    client, svc = api_client
    client.post("/movies/tt0133093/rating", data={"rating": "8"})
    resp = client.post("/movies/tt0133093/watched", follow_redirects=True)
    assert resp.status_code == 200
    assert b"Added to watched list" in resp.data
    assert svc.get_watched("tt0133093").user_rating == 8

    detail = client.get("/movies/tt0133093")
    assert b"You rated with movie 8" in detail.data

    resp2 = client.post("/watched/tt0133093/delete", follow_redirects=True)
    assert b"Removed from watched list" in resp2.data
    assert svc.list_watched() == []

def test_add_duplicate_flashes_error(api_client):
    client, svc = api_client
    svc.add_from_detail(MATRIX_DETAIL, 7)
    client.post("/movies/tt0133093/rating", data={"rating": "9"})
    resp = client.post("/movies/tt0133093/watched", follow_redirects=True)
    assert b"already in your watched list" in resp.data
    assert len(svc.list_watched()) == 1

def test_add_without_rating_flashes_error(api_client):
    client, svc = api_client
    resp = client.post("/movies/tt0133093/watched", follow_redirects=True)
    assert b"user_rating must be 1-10" in resp.data
    assert svc.list_watched() == []

def test_add_unknown_movie_flashes_error(api_client):
    client, svc = api_client
    resp = client.post("/movies/tt-missing/watched", follow_redirects=True)
    assert b"Movie not found" in resp.data
    assert svc.list_watched() == []

# ---------- export ----------
def test_export_json_and_csv(api_client):
    client, svc = api_client
    svc.add_from_detail(MATRIX_DETAIL, 9, 1)
    resp = client.get("/watched/export?format=json")
    assert resp.status_code == 200
    assert resp.mimetype == "application/json"
    data = json.loads(resp.data.decode())
    assert data[0]["imdbID"] == "tt0133093" and data[0]["userRating"] == 9

    resp2 = client.get("/watched/export?format=csv")
    assert resp2.mimetype == "text/csv"
    rows = list(csv.DictReader(io.StringIO(resp2.data.decode("utf-8"))))
    assert rows[0]["title"] == "The Matrix"

# ---------- JSON API ----------
def test_api_search(api_client):
    client, _ = api_client
    data = client.get("/api/search?q=the+matrix").get_json()
    assert [r["imdbID"] for r in data["results"]] == ["tt0133093", "tt0234215"]
    assert data["error"] == "" and data["isLoading"] is False

def test_api_search_short_query(api_client):
    client, svc = api_client
    data = client.get("/api/search?q=ab").get_json()
    assert data["results"] == [] and data["error"] == ""
    assert svc.client.search_calls == []

def test_api_search_transport_error(api_client):
    client, _ = api_client
    data = client.get("/api/search?q=broken").get_json()
    assert data["error"] == "Something went wrong with fetching movies"

def test_api_watched_and_missing_item(api_client):
    client, svc = api_client
    svc.add_from_detail(MATRIX_DETAIL, 6)
    data = client.get("/api/watched").get_json()
    assert data["summary"]["count"] == 1
    assert data["watched"][0]["imdbID"] == "tt0133093"
    assert client.get("/api/watched/tt0133093").get_json()["userRating"] == 6
    resp = client.get("/api/watched/tt-nope")
    assert resp.status_code == 404
