"""Normalization of untrusted constraint payloads into ``SchedulerConstraints``.

Every field goes through its own coercer with an explicit default. Nothing in
here raises: unknown shapes fall back to defaults, numbers are clamped.
"""

from __future__ import annotations

from collections.abc import Mapping
import math
from typing import Any

from pydantic import BaseModel

from tuition_planner.schemas.planner import (
    DAY_ORDER,
    ClassHourConstraint,
    SchedulerConstraints,
    SchedulerFilters,
)

DEFAULT_DAYS_PER_WEEK = 5
DEFAULT_CLASSES_PER_DAY = 4
DEFAULT_STUDENTS_PER_HOUR = 4
MAX_CLASS_NAME_LENGTH = 60
MAX_HOURS_PER_CLASS = 40

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "daysPerWeek": ("daysPerWeek", "days_per_week"),
    "classesPerDay": ("classesPerDay", "classes_per_day"),
    "studentsPerHour": ("studentsPerHour", "students_per_hour"),
    "classHours": ("classHours", "class_hours"),
    "className": ("className", "class_name"),
    "hoursPerWeek": ("hoursPerWeek", "hours_per_week"),
    "filters": ("filters",),
    "sameBoardOnly": ("sameBoardOnly", "same_board_only"),
    "sameGradeOnly": ("sameGradeOnly", "same_grade_only"),
    "offDays": ("offDays", "off_days"),
    "preferredDays": ("preferredDays", "preferred_days"),
}


def clamp_int(value: float, minimum: int, maximum: int) -> int:
    if math.isinf(value):
        return maximum if value > 0 else minimum
    return min(maximum, max(minimum, math.trunc(value)))


def to_number(value: Any) -> float | None:
    """Best-effort numeric parse. Returns None for anything that is not a number or numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            number = float(stripped)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def parse_boolean(value: Any, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
    return fallback


def as_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return value
    return {}


def has_field(obj: Mapping[str, Any], field: str) -> bool:
    return any(key in obj for key in FIELD_ALIASES.get(field, (field,)))


def pick(obj: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES.get(field, (field,)):
        if key in obj:
            return obj[key]
    return None


def bounded_int(value: Any, default: int, minimum: int, maximum: int) -> int:
    number = to_number(value)
    # Zero counts as missing.
    if not number:
        number = default
    return clamp_int(number, minimum, maximum)


def normalize_day_codes(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return list(dict.fromkeys(day for day in value if isinstance(day, str) and day in DAY_ORDER))


def normalize_class_hours(value: Any) -> list[ClassHourConstraint]:
    if not isinstance(value, (list, tuple)):
        return []

    hours_by_name: dict[str, int] = {}
    for row in value:
        obj = as_mapping(row)
        raw_name = pick(obj, "className")
        class_name = raw_name.strip() if isinstance(raw_name, str) else ""
        raw_hours = pick(obj, "hoursPerWeek")
        hours = to_number(raw_hours)
        # Integers are finite even when they overflow a float.
        finite = hours is not None and (not math.isinf(hours) or isinstance(raw_hours, int))
        if not class_name or not finite or hours <= 0:
            continue
        name = class_name[:MAX_CLASS_NAME_LENGTH]
        hours_by_name[name] = hours_by_name.get(name, 0) + clamp_int(hours, 1, MAX_HOURS_PER_CLASS)

    return [ClassHourConstraint(className=name, hoursPerWeek=hours) for name, hours in hours_by_name.items()]


def sanitize_constraints(value: Any) -> SchedulerConstraints:
    obj = as_mapping(value)
    filters = as_mapping(pick(obj, "filters"))

    return SchedulerConstraints(
        daysPerWeek=bounded_int(pick(obj, "daysPerWeek"), DEFAULT_DAYS_PER_WEEK, 1, 7),
        classesPerDay=bounded_int(pick(obj, "classesPerDay"), DEFAULT_CLASSES_PER_DAY, 1, 24),
        studentsPerHour=bounded_int(pick(obj, "studentsPerHour"), DEFAULT_STUDENTS_PER_HOUR, 1, 100),
        classHours=normalize_class_hours(pick(obj, "classHours")),
        filters=SchedulerFilters(
            sameBoardOnly=parse_boolean(pick(filters, "sameBoardOnly"), True),
            sameGradeOnly=parse_boolean(pick(filters, "sameGradeOnly"), True),
        ),
        offDays=normalize_day_codes(pick(obj, "offDays")),
        preferredDays=normalize_day_codes(pick(obj, "preferredDays")),
    )
