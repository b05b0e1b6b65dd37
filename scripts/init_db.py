# scripts/init_db.py
import sqlite3
import os

DB = os.path.join("data","popcorn.db")
os.makedirs(os.path.dirname(DB), exist_ok=True)
with sqlite3.connect(DB) as c:
    cur = c.cursor()
    cur.executescript("""
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """)
    # empty watched list so the app starts from a known snapshot
    cur.execute("INSERT OR IGNORE INTO kv (key, value) VALUES (?, ?)", ("watched", "[]"))
    print("initialized db at", DB)
