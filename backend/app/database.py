import logging
import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import settings

logger = logging.getLogger("app.database")


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def make_session_factory(db_path: Path | None = None) -> sessionmaker:
    engine = get_engine(db_path)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


SCHEMA_SQL = """\
-- ============================================================
-- DOCUMENTS
-- ============================================================
CREATE TABLE IF NOT EXISTS documents (
    id                TEXT PRIMARY KEY,
    original_filename TEXT NOT NULL,
    custom_name       TEXT NOT NULL,
    stored_path       TEXT NOT NULL,
    database_name     TEXT NOT NULL,
    extracted_data    TEXT,
    uploaded_at       TEXT NOT NULL,
    status            TEXT NOT NULL DEFAULT 'uploaded'
                      CHECK(status IN ('uploaded','processed')),
    file_size_bytes   INTEGER,
    mime_type         TEXT
);

CREATE INDEX IF NOT EXISTS idx_documents_database ON documents(database_name);
CREATE INDEX IF NOT EXISTS idx_documents_uploaded ON documents(uploaded_at);

-- ============================================================
-- CSV IMPORTS
-- ============================================================
CREATE TABLE IF NOT EXISTS csv_imports (
    id             TEXT PRIMARY KEY,
    filename       TEXT NOT NULL,
    headers        TEXT NOT NULL,
    rows           TEXT NOT NULL,
    uploaded_at    TEXT NOT NULL,
    form_generated INTEGER NOT NULL DEFAULT 0
);

-- ============================================================
-- FORMS
-- ============================================================
CREATE TABLE IF NOT EXISTS forms (
    id               TEXT PRIMARY KEY,
    name             TEXT NOT NULL,
    fields           TEXT NOT NULL,
    database_name    TEXT NOT NULL,
    web_link         TEXT NOT NULL,
    created_at       TEXT NOT NULL,
    source           TEXT NOT NULL DEFAULT 'manual'
                     CHECK(source IN ('manual','csv','assistant')),
    submission_count INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_forms_database ON forms(database_name);

-- ============================================================
-- FORM SUBMISSIONS
-- ============================================================
CREATE TABLE IF NOT EXISTS form_submissions (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    form_id      TEXT NOT NULL REFERENCES forms(id) ON DELETE CASCADE,
    data         TEXT NOT NULL,
    submitted_at TEXT NOT NULL,
    ip_address   TEXT
);

CREATE INDEX IF NOT EXISTS idx_submissions_form ON form_submissions(form_id);

-- ============================================================
-- HISTORY
-- ============================================================
CREATE TABLE IF NOT EXISTS history (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    entity_type   TEXT NOT NULL
                  CHECK(entity_type IN ('document','csv_import','form','submission')),
    action        TEXT NOT NULL,
    database_name TEXT,
    timestamp     TEXT NOT NULL,
    details       TEXT
);
"""


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.executescript(SCHEMA_SQL)
    conn.close()


def check_integrity(db_path: Path | None = None) -> bool:
    path = db_path or settings.db_path
    conn = sqlite3.connect(str(path))
    result = conn.execute("PRAGMA integrity_check").fetchone()
    conn.close()
    if result and result[0] == "ok":
        logger.info("Database integrity check passed.")
        return True
    logger.error("DATABASE INTEGRITY CHECK FAILED: %s", result)
    return False
