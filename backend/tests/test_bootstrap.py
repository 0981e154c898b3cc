from sqlalchemy import create_engine, inspect, text

from jobportal.bootstrap import run_runtime_migrations


LEGACY_SCHEMA = [
    "CREATE TABLE users (id INTEGER PRIMARY KEY, email VARCHAR(255))",
    "CREATE TABLE application_documents ("
    "id INTEGER PRIMARY KEY, application_id INTEGER, kind VARCHAR(20), "
    "storage_id VARCHAR(500), retrieval_url VARCHAR(1000))",
]


def _legacy_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as conn:
        for statement in LEGACY_SCHEMA:
            conn.execute(text(statement))
        conn.execute(
            text("INSERT INTO application_documents (id, application_id, kind, storage_id, retrieval_url) VALUES (:id, 1, 'resume', :sid, :url)"),
            [
                {"id": 1, "sid": "a", "url": "https://res.example.com/raw/authenticated/s--x--/a.pdf"},
                {"id": 2, "sid": "b", "url": "https://res.example.com/image/upload/v1/b.pdf"},
                {"id": 3, "sid": "c", "url": "https://res.example.com/raw/upload/v1/c.pdf"},
            ],
        )
    return engine


def test_backfills_signed_url_flag_for_legacy_rows(tmp_path):
    engine = _legacy_engine(tmp_path)
    run_runtime_migrations(engine)

    with engine.connect() as conn:
        rows = conn.execute(text("SELECT id, requires_signed_url FROM application_documents ORDER BY id")).all()
    assert [(row.id, bool(row.requires_signed_url)) for row in rows] == [(1, True), (2, True), (3, False)]

    user_columns = {column["name"] for column in inspect(engine).get_columns("users")}
    assert "avatar_storage_id" in user_columns


def test_migrations_are_idempotent(tmp_path):
    engine = _legacy_engine(tmp_path)
    run_runtime_migrations(engine)
    with engine.begin() as conn:
        conn.execute(text("UPDATE application_documents SET requires_signed_url = 0 WHERE id = 1"))

    run_runtime_migrations(engine)

    with engine.connect() as conn:
        flag = conn.execute(text("SELECT requires_signed_url FROM application_documents WHERE id = 1")).scalar_one()
    assert not flag


def test_fresh_schema_needs_no_changes(engine):
    with engine.begin() as conn:
        conn.execute(
            text(
                "INSERT INTO application_documents "
                "(id, application_id, kind, storage_id, retrieval_url, requires_signed_url) "
                "VALUES (1, 1, 'resume', 'a', 'https://res.example.com/raw/authenticated/a.pdf', 0)"
            )
        )

    run_runtime_migrations(engine)

    with engine.connect() as conn:
        flag = conn.execute(text("SELECT requires_signed_url FROM application_documents WHERE id = 1")).scalar_one()
    assert not flag
    columns = {column["name"] for column in inspect(engine).get_columns("application_documents")}
    assert "requires_signed_url" in columns
