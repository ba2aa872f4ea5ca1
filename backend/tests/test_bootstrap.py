import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from timegrid.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def _memory_engine():
    return create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda bind: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility(_memory_engine())


def test_missing_schema_items_reports_missing_table():
    engine = _memory_engine()

    assert bootstrap.missing_schema_items(engine) == (["timetable_snapshots"], {})

    bootstrap.ensure_runtime_schema_compatibility(engine)
    assert bootstrap.missing_schema_items(engine) == ([], {})


def test_missing_schema_items_reports_missing_columns():
    engine = _memory_engine()
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE timetable_snapshots (key VARCHAR(50) PRIMARY KEY, payload JSON)"))

    assert bootstrap.missing_schema_items(engine) == ([], {"timetable_snapshots": ["updated_at"]})
    with pytest.raises(RuntimeError):
        bootstrap.ensure_runtime_schema_compatibility(engine)
