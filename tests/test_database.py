from sqlalchemy import text

from practice.database import build_engine, get_db


def test_sqlite_engine_allows_cross_thread_use():
    engine = build_engine("sqlite://")
    assert engine.dialect.name == "sqlite"
    with engine.connect() as conn:
        assert conn.execute(text("select 1")).scalar() == 1


def test_get_db_closes_session():
    sessions = get_db()
    db = next(sessions)
    assert db.is_active
    sessions.close()
