from __future__ import annotations

import logging

from sqlalchemy import inspect

from tuition_planner import models  # noqa: F401
from tuition_planner.db.base import Base
from tuition_planner.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "hashed_password"},
    "teachers": {"id", "user_id"},
    "students": {"id", "teacher_id", "board", "grade", "num_of_classes_per_week"},
    "recurring_schedules": {"id", "teacher_id", "start_time", "end_time", "max_students"},
    "recurring_schedule_days": {"id", "recurring_schedule_id", "day"},
    "recurring_day_assignments": {"id", "recurring_schedule_id", "day", "student_id"},
}


def find_schema_gaps(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns() -> None:
    with engine.connect() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")
    if missing_columns:
        flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
