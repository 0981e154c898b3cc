from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine


logger = logging.getLogger(__name__)

# Databases created before application_documents had requires_signed_url hold
# descriptors imported from the Cloudinary-backed deployment. There, authenticated
# uploads were only recognisable by these delivery URL path segments.
LEGACY_SIGNED_URL_MARKERS = ("%/authenticated/%", "%/image/upload/%")


def _column_exists(conn: Connection, table_name: str, column_name: str) -> bool:
    return any(column["name"] == column_name for column in inspect(conn).get_columns(table_name))


def _add_column_if_missing(conn: Connection, table_name: str, column_name: str, column_sql: str) -> bool:
    if _column_exists(conn, table_name, column_name):
        return False
    conn.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_sql}"))
    return True


def _backfill_signed_url_flag(conn: Connection) -> None:
    marked = 0
    for marker in LEGACY_SIGNED_URL_MARKERS:
        result = conn.execute(
            text(
                "UPDATE application_documents SET requires_signed_url = :flag "
                "WHERE requires_signed_url IS NULL AND retrieval_url LIKE :marker"
            ),
            {"flag": True, "marker": marker},
        )
        marked += result.rowcount or 0
    conn.execute(
        text("UPDATE application_documents SET requires_signed_url = :flag WHERE requires_signed_url IS NULL"),
        {"flag": False},
    )
    logger.info("Backfilled requires_signed_url: signed=%s", marked)


def run_runtime_migrations(engine: Engine) -> None:
    """Patch databases created by earlier schema versions; a no-op on fresh ones."""
    with engine.begin() as conn:
        if _add_column_if_missing(conn, "application_documents", "requires_signed_url", "requires_signed_url BOOLEAN"):
            _backfill_signed_url_flag(conn)
        _add_column_if_missing(conn, "users", "avatar_storage_id", "avatar_storage_id VARCHAR(500)")
