import json
import os
import logging
from flask import Flask
from popcorn.storage import SqliteKeyValueStore
from popcorn.persisted import WatchedStore
from popcorn.omdb import OmdbClient
from popcorn.service import PopcornService
from popcorn.web import register_routes, register_error_handlers

DEFAULT_CFG = {
    "database": "data/popcorn.db",
    "debug": True,
    "host": "127.0.0.1",
    "port": 5000,
    "logging_level": "INFO",
    "omdb_base_url": "https://www.omdbapi.com/",
    "omdb_api_key": "a4954f1c",
    "request_timeout": 10,
    "watched_key": "watched",
}

def load_config(path="config.json"):
    if not os.path.exists(path):
        print("config.json not found — using defaults")
        cfg = DEFAULT_CFG.copy()
    else:
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
            cfg = DEFAULT_CFG.copy()
            cfg.update(loaded)
        except Exception as e:
            print("Failed to read config.json:", e, " — using defaults")
            cfg = DEFAULT_CFG.copy()
    if os.environ.get("OMDB_API_KEY"):
        cfg["omdb_api_key"] = os.environ["OMDB_API_KEY"]
    return cfg

cfg = load_config()

def configure_logging(level_name: str):
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # quieter werkzeug and urllib3 when not debugging
    logging.getLogger("werkzeug").setLevel(logging.WARNING if not cfg.get("debug") else logging.INFO)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

def create_app():
    configure_logging(cfg.get("logging_level", "INFO"))
    logger = logging.getLogger(__name__)
    logger.info("Starting app with config: %s", {k: v for k, v in cfg.items() if k not in ("database", "omdb_api_key")})

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "dev-key")
    storage = SqliteKeyValueStore(cfg["database"])
    client = OmdbClient(cfg["omdb_api_key"], base_url=cfg["omdb_base_url"], timeout=cfg.get("request_timeout"))
    service = PopcornService(client, WatchedStore(storage, key=cfg.get("watched_key", "watched")))
    app.config["SERVICE"] = service

    register_routes(app, service)
    register_error_handlers(app)
    return app

if __name__ == "__main__":
    app = create_app()
    app.run(host=cfg.get("host", "127.0.0.1"), port=cfg.get("port", 5000), debug=cfg.get("debug", True))
