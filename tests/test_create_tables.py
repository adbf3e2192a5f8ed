from sqlalchemy import inspect

from create_tables import create_tables
from database import build_engine


def test_create_tables_reports_every_table():
    engine = build_engine("sqlite://")
    try:
        status = create_tables(engine)
        assert status == {"users": True, "threads": True, "messages": True}
        assert {"users", "threads", "messages"} <= set(inspect(engine).get_table_names())
        # Running again is harmless
        assert all(create_tables(engine).values())
    finally:
        engine.dispose()
