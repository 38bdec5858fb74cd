"""Turns a generated plan into rows of the teacher's recurring calendar.

A plan addresses slots by ``(day, slotIndex)``; slot k of a day is the k-th
recurring schedule enabled on that day, ordered by start time then id.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
import logging
import math
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from tuition_planner.core.config import Settings
from tuition_planner.core.exceptions import PlannerError, SlotShortageError
from tuition_planner.models.recurring_schedule import (
    RecurringDayAssignment,
    RecurringSchedule,
    RecurringScheduleDay,
    WeekDay,
)
from tuition_planner.models.student import Student
from tuition_planner.schemas.planner import (
    DAY_ORDER,
    AppliedAssignment,
    ApplyPlanResponse,
    CreatedSlot,
    CreateMissingSlotsResponse,
)
from tuition_planner.schemas.recurring_schedule import minutes_to_time, parse_time_to_minutes

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
DEFAULT_STUDENTS_PER_CLASS = 4


@dataclass(frozen=True)
class PlanSession:
    slot_index: int
    student_ids: tuple[int, ...] = ()


@dataclass
class PlanDay:
    day: str
    sessions: list[PlanSession] = field(default_factory=list)

    @property
    def required_slots(self) -> int:
        return max((session.slot_index for session in self.sessions), default=0)


def _positive_slot_index(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not float(value).is_integer() or value <= 0:
        return None
    return int(value)


def _as_integer(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer():
        return None
    return int(number)


def _as_student_id(value: Any) -> int | None:
    number = _as_integer(value)
    return number if number is not None and number > 0 else None


def _plan_rows(plan: Any) -> list[tuple[str, list[Any]]]:
    if not isinstance(plan, dict) or not isinstance(plan.get("schedule"), list):
        return []
    rows: list[tuple[str, list[Any]]] = []
    for row in plan["schedule"]:
        if not isinstance(row, dict) or row.get("day") not in DAY_ORDER or not isinstance(row.get("sessions"), list):
            continue
        rows.append((row["day"], row["sessions"]))
    return rows


def normalize_plan_assignments(plan: Any) -> list[PlanDay]:
    """Plan days for applying: sessions need a positive integer slotIndex and a studentIds list."""
    days: list[PlanDay] = []
    for day, sessions in _plan_rows(plan):
        normalized: list[PlanSession] = []
        for session in sessions:
            if not isinstance(session, dict) or not isinstance(session.get("studentIds"), list):
                continue
            slot_index = _positive_slot_index(session.get("slotIndex"))
            if slot_index is None:
                continue
            student_ids = (_as_student_id(item) for item in session["studentIds"])
            normalized.append(
                PlanSession(
                    slot_index=slot_index,
                    student_ids=tuple(item for item in student_ids if item is not None),
                )
            )
        days.append(PlanDay(day=day, sessions=normalized))
    return days


def normalize_plan_slots(plan: Any) -> list[PlanDay]:
    """Plan days for slot creation: only integral slot indexes matter, floored at 1."""
    days: list[PlanDay] = []
    for day, sessions in _plan_rows(plan):
        normalized: list[PlanSession] = []
        for session in sessions:
            index = _as_integer(session.get("slotIndex")) if isinstance(session, dict) else None
            if index is None:
                continue
            normalized.append(PlanSession(slot_index=max(1, index)))
        days.append(PlanDay(day=day, sessions=normalized))
    return days


def to_positive_int(value: Any, fallback: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if not math.isfinite(value) or value <= 0:
        return fallback
    return max(1, math.floor(value + 0.5))


def load_slots_by_day(db: Session, teacher_id: int) -> dict[str, list[RecurringSchedule]]:
    schedules = (
        db.execute(
            select(RecurringSchedule)
            .where(RecurringSchedule.teacher_id == teacher_id)
            .order_by(RecurringSchedule.start_time.asc(), RecurringSchedule.id.asc())
        )
        .scalars()
        .all()
    )
    slots_by_day: dict[str, list[RecurringSchedule]] = defaultdict(list)
    for schedule in schedules:
        enabled = {item.day.value for item in schedule.days}
        for day in DAY_ORDER:
            if day in enabled:
                slots_by_day[day].append(schedule)
    return slots_by_day


def apply_plan(db: Session, *, teacher_id: int, plan: Any) -> ApplyPlanResponse:
    plan_days = normalize_plan_assignments(plan)
    if not plan_days:
        raise PlannerError("Plan has no valid schedule days")

    slots_by_day = load_slots_by_day(db, teacher_id)
    valid_student_ids = set(
        db.execute(select(Student.id).where(Student.teacher_id == teacher_id)).scalars().all()
    )

    warnings: list[str] = []
    missing: list[str] = []
    seen: set[tuple[int, str, int]] = set()
    assignments: list[AppliedAssignment] = []

    for plan_day in plan_days:
        day_slots = slots_by_day.get(plan_day.day, [])
        if not day_slots:
            missing.append(f"{plan_day.day} requires slots, but none exist")
            continue
        if plan_day.required_slots > len(day_slots):
            missing.append(
                f"{plan_day.day} requests {plan_day.required_slots} slot(s), "
                f"but only {len(day_slots)} slot(s) exist"
            )
            continue

        for session in sorted(plan_day.sessions, key=lambda item: item.slot_index):
            slot = day_slots[session.slot_index - 1]
            eligible = [student_id for student_id in dict.fromkeys(session.student_ids) if student_id in valid_student_ids]
            if len(eligible) > slot.max_students:
                warnings.append(
                    f"{plan_day.day} slot {session.slot_index} exceeded capacity ({slot.max_students}). "
                    "Extra students were skipped."
                )
            for student_id in eligible[: slot.max_students]:
                key = (slot.id, plan_day.day, student_id)
                if key in seen:
                    continue
                seen.add(key)
                assignments.append(AppliedAssignment(scheduleId=slot.id, day=plan_day.day, studentId=student_id))

    if missing:
        raise SlotShortageError(missing)

    teacher_schedule_ids = select(RecurringSchedule.id).where(RecurringSchedule.teacher_id == teacher_id)
    try:
        db.execute(
            delete(RecurringDayAssignment)
            .where(RecurringDayAssignment.recurring_schedule_id.in_(teacher_schedule_ids))
            .execution_options(synchronize_session=False)
        )
        db.add_all(
            RecurringDayAssignment(
                recurring_schedule_id=item.scheduleId,
                day=WeekDay(item.day),
                student_id=item.studentId,
            )
            for item in assignments
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Applied %d plan assignment(s) for teacher %s", len(assignments), teacher_id)
    return ApplyPlanResponse(
        success=True,
        appliedAssignments=assignments,
        appliedCount=len(assignments),
        warnings=warnings,
    )


def create_missing_slots(
    db: Session,
    *,
    teacher_id: int,
    plan: Any,
    hours_per_class: Any,
    students_per_class: Any,
    settings: Settings,
    today: date,
) -> CreateMissingSlotsResponse:
    plan_days = normalize_plan_slots(plan)
    if not plan_days:
        raise PlannerError("Plan has no valid schedule days")

    if students_per_class is None and isinstance(plan, dict) and isinstance(plan.get("constraints"), dict):
        students_per_class = plan["constraints"].get("studentsPerHour")
    capacity = to_positive_int(students_per_class, DEFAULT_STUDENTS_PER_CLASS)
    duration = max(settings.min_slot_duration_minutes, to_positive_int(hours_per_class, 1) * 60)
    default_start = parse_time_to_minutes(settings.default_first_slot_start)

    slots_by_day = load_slots_by_day(db, teacher_id)
    created: list[CreatedSlot] = []
    overflow: list[str] = []

    try:
        for plan_day in plan_days:
            existing = slots_by_day.get(plan_day.day, [])
            missing_count = plan_day.required_slots - len(existing)
            if missing_count <= 0:
                continue

            first_start = parse_time_to_minutes(existing[-1].end_time) if existing else default_start
            last_end = first_start + missing_count * duration
            if last_end > MINUTES_PER_DAY:
                overflow.append(
                    f"{plan_day.day} needs {missing_count} more slot(s) of {duration} minutes, "
                    f"which would run past midnight"
                )
                continue

            for offset in range(missing_count):
                start = first_start + offset * duration
                schedule = RecurringSchedule(
                    teacher_id=teacher_id,
                    start_time=minutes_to_time(start),
                    end_time=minutes_to_time(start + duration),
                    start_date=today,
                    end_date=None,
                    max_students=capacity,
                    days=[RecurringScheduleDay(day=WeekDay(plan_day.day))],
                )
                db.add(schedule)
                created.append(CreatedSlot(day=plan_day.day, startTime=schedule.start_time, endTime=schedule.end_time))

        if overflow:
            raise PlannerError("Not enough hours left in the day to create the missing slots", details={"days": overflow})
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Created %d missing slot(s) for teacher %s", len(created), teacher_id)
    return CreateMissingSlotsResponse(success=True, createdCount=len(created), createdSlots=created)
