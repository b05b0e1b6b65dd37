# popcorn/web.py
from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app, Response, jsonify, session
from popcorn.service import PopcornService, ValidationError, NotFoundError
from popcorn.details import TitleSurface
import csv, io, json, logging

logger = logging.getLogger(__name__)

bp = Blueprint("main", __name__, url_prefix="", template_folder="templates")  # blueprint name = 'main'

EXPORT_FIELDS = ["imdbID", "title", "year", "poster", "imdbRating", "runtime", "userRating", "countRatingDecisions"]

def register_routes(app, service: PopcornService):
    """
    Register blueprint and ensure SERVICE is in app.config.
    Call this once during app creation (run.create_app does this).
    """
    if "SERVICE" not in app.config:
        app.config["SERVICE"] = service
    app.register_blueprint(bp)
    logger.debug("Registered blueprint 'main' and injected SERVICE")

def register_error_handlers(app):
    """Centralized handlers for service exceptions."""
    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        logger.warning("ValidationError: %s", e)
        return render_template("error.html", message=str(e), page_title=TitleSurface().value), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        logger.info("NotFoundError: %s", e)
        return render_template("error.html", message=str(e), page_title=TitleSurface().value), 404

# helper to get service instance
def current_service() -> PopcornService:
    return current_app.config["SERVICE"]

async def run_search(svc: PopcornService, query: str):
    controller = svc.search_controller()
    controller.set_query(query)
    await controller.settle()
    return controller

# -----------------------
# Search + watched list
# -----------------------
@bp.route("/")
async def index():
    svc = current_service()
    q = request.args.get("q", "")
    search = await run_search(svc, q)
    return render_template("index.html", query=q, search=search,
                           watched=svc.list_watched(), summary=svc.summary(),
                           page_title=TitleSurface().value)

# -----------------------
# Details
# -----------------------
# rating state for the open movie lives in the signed session cookie;
# opening a different movie starts a fresh counter
def load_rating(details, imdb_id: str) -> None:
    state = session.get("rating")
    if state and state.get("imdb_id") == imdb_id:
        details.restore_rating(state.get("user_rating"), int(state.get("count", 0)))

def save_rating(details, imdb_id: str) -> None:
    session["rating"] = {"imdb_id": imdb_id, "user_rating": details.user_rating,
                         "count": details.count_rating_decisions}

async def open_details(svc: PopcornService, imdb_id: str, title: TitleSurface = None):
    details = svc.detail_fetcher(title=title)
    details.select(imdb_id)
    await details.settle()
    load_rating(details, imdb_id)
    return details

@bp.route("/movies/<imdb_id>")
async def movie_detail(imdb_id: str):
    svc = current_service()
    title = TitleSurface()
    details = await open_details(svc, imdb_id, title)
    save_rating(details, imdb_id)
    watched = svc.watched.get(imdb_id)
    return render_template("details.html", details=details, movie=details.movie,
                           watched=watched, page_title=title.value)

@bp.route("/movies/<imdb_id>/rating", methods=["POST"])
def movie_rate(imdb_id: str):
    svc = current_service()
    try:
        rating = int(request.form.get("rating", ""))
        if not (1 <= rating <= 10):
            raise ValidationError("user_rating must be 1-10")
        details = svc.detail_fetcher()
        load_rating(details, imdb_id)
        details.rate(rating)
        save_rating(details, imdb_id)
    except (ValidationError, ValueError) as e:
        flash(str(e), "danger")
    return redirect(url_for("main.movie_detail", imdb_id=imdb_id))

@bp.route("/movies/<imdb_id>/watched", methods=["POST"])
async def watched_add(imdb_id: str):
    svc = current_service()
    details = await open_details(svc, imdb_id)
    try:
        record = details.to_watched()
        if record is None:
            raise ValidationError(details.error or "movie not loaded")
        svc.add_watched(record)
        session.pop("rating", None)
        flash("Added to watched list", "success")
        return redirect(url_for("main.index"))
    except ValidationError as e:
        flash(str(e), "danger")
    return redirect(url_for("main.movie_detail", imdb_id=imdb_id))

@bp.route("/watched/<imdb_id>/delete", methods=["POST"])
def watched_delete(imdb_id: str):
    svc = current_service()
    svc.delete_watched(imdb_id)
    flash("Removed from watched list", "info")
    return redirect(url_for("main.index"))

# -----------------------
# Export
# -----------------------
@bp.route("/watched/export")
def export_watched():
    svc = current_service()
    fmt = request.args.get("format", "csv").lower()
    rows = svc.export_watched()
    if fmt == "json":
        return Response(json.dumps(rows, ensure_ascii=False), mimetype="application/json")
    # CSV
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for r in rows:
        writer.writerow(r)
    csv_bytes = output.getvalue().encode("utf-8")
    return Response(csv_bytes, mimetype="text/csv", headers={"Content-Disposition": "attachment; filename=watched.csv"})

# -----------------------
# JSON API
# -----------------------
@bp.route("/api/search")
async def api_search():
    svc = current_service()
    search = await run_search(svc, request.args.get("q", ""))
    return jsonify({
        "query": search.query,
        "results": [{"imdbID": m.imdb_id, "Title": m.title, "Year": m.year, "Poster": m.poster}
                    for m in search.results],
        "isLoading": search.is_loading,
        "error": search.error,
    })

@bp.route("/api/watched")
def api_watched():
    svc = current_service()
    return jsonify({"watched": svc.export_watched(), "summary": svc.summary()})

@bp.route("/api/watched/<imdb_id>")
def api_watched_item(imdb_id: str):
    return jsonify(current_service().get_watched(imdb_id).to_dict())
