from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
from typing import Any, Iterable

from tuition_planner.schemas.planner import (
    DAY_ORDER,
    PlanTotals,
    ScheduledDay,
    ScheduledSession,
    SchedulerConstraints,
    SchedulerFilters,
    SchedulerPlanResult,
    UnscheduledSession,
)
from tuition_planner.services.scheduler_constraints import sanitize_constraints, to_number

logger = logging.getLogger(__name__)

UNKNOWN_BOARD = "UNKNOWN_BOARD"
UNKNOWN_GRADE = "UNKNOWN_GRADE"
ANY_BOARD = "ANY_BOARD"
ANY_GRADE = "ANY_GRADE"

EMPTY_CLASS_HOURS_WARNING = "No class-hour constraints were provided. Returning an empty schedule."


@dataclass(frozen=True)
class RosterStudent:
    id: int
    board: str | None = None
    grade: str | None = None
    num_of_classes_per_week: int | None = None


@dataclass(frozen=True)
class StudentGroup:
    key: str
    board: str | None
    grade: str | None
    student_ids: tuple[int, ...]


@dataclass(frozen=True)
class StudentBatch:
    batch_id: str
    board: str | None
    grade: str | None
    student_ids: tuple[int, ...]


@dataclass(frozen=True)
class DemandUnit:
    demand_id: str
    class_name: str
    batch: StudentBatch


def _clean_label(value: Any) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _weekly_quota(value: Any) -> int | None:
    number = to_number(value)
    if number is None:
        return None
    # An unbounded quota behaves like no quota at all.
    if math.isinf(number):
        return None if number > 0 else 0
    return max(0, math.trunc(number))


def to_roster_student(item: Any) -> RosterStudent:
    """Accepts a RosterStudent, an ORM Student, or a mapping with the same fields."""
    if isinstance(item, RosterStudent):
        return item
    if isinstance(item, dict):
        quota = item.get("num_of_classes_per_week", item.get("numOfClassesPerWeek"))
        return RosterStudent(
            id=int(item["id"]),
            board=_clean_label(item.get("board")),
            grade=_clean_label(item.get("grade")),
            num_of_classes_per_week=_weekly_quota(quota),
        )
    return RosterStudent(
        id=int(item.id),
        board=_clean_label(getattr(item, "board", None)),
        grade=_clean_label(getattr(item, "grade", None)),
        num_of_classes_per_week=_weekly_quota(getattr(item, "num_of_classes_per_week", None)),
    )


def split_students_into_groups(students: Iterable[RosterStudent], filters: SchedulerFilters) -> list[StudentGroup]:
    members: dict[str, list[int]] = {}
    labels: dict[str, tuple[str | None, str | None]] = {}

    for student in students:
        board_part = (student.board or UNKNOWN_BOARD) if filters.sameBoardOnly else ANY_BOARD
        grade_part = (student.grade or UNKNOWN_GRADE) if filters.sameGradeOnly else ANY_GRADE
        key = f"{board_part}|{grade_part}"
        if key not in members:
            members[key] = []
            labels[key] = (
                student.board if filters.sameBoardOnly else None,
                student.grade if filters.sameGradeOnly else None,
            )
        members[key].append(student.id)

    return [
        StudentGroup(key=key, board=labels[key][0], grade=labels[key][1], student_ids=tuple(members[key]))
        for key in sorted(members)
    ]


def build_batches(groups: Iterable[StudentGroup], students_per_hour: int) -> list[StudentBatch]:
    batches: list[StudentBatch] = []
    for group in groups:
        for start in range(0, len(group.student_ids), students_per_hour):
            batches.append(
                StudentBatch(
                    batch_id=f"{group.key}#{start // students_per_hour + 1}",
                    board=group.board,
                    grade=group.grade,
                    student_ids=group.student_ids[start : start + students_per_hour],
                )
            )
    return batches


def _pick_students_for_batch(
    batch: StudentBatch,
    *,
    limit: int,
    remaining: dict[int, int],
    cursors: dict[str, int],
) -> list[int]:
    order = batch.student_ids
    start = cursors.get(batch.batch_id, 0)
    rotated = order[start:] + order[:start]
    chosen = [student_id for student_id in rotated if remaining.get(student_id, 0) > 0][:limit]
    if not chosen:
        return []

    for student_id in chosen:
        remaining[student_id] = max(0, remaining.get(student_id, 0) - 1)

    # Cursor follows the last chosen student's position in the unfiltered batch order.
    cursors[batch.batch_id] = (order.index(chosen[-1]) + 1) % len(order)
    return chosen


def build_demand(
    constraints: SchedulerConstraints,
    batches: list[StudentBatch],
    students: Iterable[RosterStudent],
) -> list[DemandUnit]:
    default_weekly_classes = sum(item.hoursPerWeek for item in constraints.classHours)
    remaining: dict[int, int] = {}
    for student in students:
        quota = student.num_of_classes_per_week
        remaining[student.id] = max(0, math.trunc(default_weekly_classes if quota is None else quota))
    cursors: dict[str, int] = {}

    demand: list[DemandUnit] = []
    for class_config in constraints.classHours:
        for repetition in range(1, class_config.hoursPerWeek + 1):
            for batch in batches:
                chosen = _pick_students_for_batch(
                    batch,
                    limit=constraints.studentsPerHour,
                    remaining=remaining,
                    cursors=cursors,
                )
                if not chosen:
                    continue
                demand.append(
                    DemandUnit(
                        demand_id=f"{batch.batch_id}|{class_config.className}|{repetition}",
                        class_name=class_config.className,
                        batch=replace(batch, student_ids=tuple(chosen)),
                    )
                )

    demand.sort(key=lambda unit: (unit.class_name, unit.batch.batch_id))
    return demand


def select_days(constraints: SchedulerConstraints) -> list[str]:
    available = [day for day in DAY_ORDER if day not in constraints.offDays]
    preferred = set(constraints.preferredDays)
    prioritized = [day for day in available if day in preferred] + [day for day in available if day not in preferred]
    return prioritized[: constraints.daysPerWeek]


def place_demand(
    demand: list[DemandUnit],
    days: list[str],
    constraints: SchedulerConstraints,
) -> tuple[list[ScheduledDay], list[DemandUnit]]:
    """Single greedy pass. Units that fit nowhere are returned as unscheduled, without retry."""
    preferred_rank = {day: index for index, day in enumerate(constraints.preferredDays)}
    sessions_by_day: list[list[ScheduledSession]] = [[] for _ in days]
    batches_by_day: list[set[str]] = [set() for _ in days]
    unscheduled: list[DemandUnit] = []

    for unit in demand:
        batch_id = unit.batch.batch_id
        ranked = sorted(
            range(len(days)),
            key=lambda index: (
                preferred_rank.get(days[index], math.inf),
                batch_id in batches_by_day[index],
                len(sessions_by_day[index]),
                index,
            ),
        )

        for index in ranked:
            sessions = sessions_by_day[index]
            if len(sessions) >= constraints.classesPerDay or batch_id in batches_by_day[index]:
                continue
            sessions.append(
                ScheduledSession(
                    slotIndex=len(sessions) + 1,
                    className=unit.class_name,
                    board=unit.batch.board,
                    grade=unit.batch.grade,
                    studentIds=list(unit.batch.student_ids),
                    studentCount=len(unit.batch.student_ids),
                )
            )
            batches_by_day[index].add(batch_id)
            break
        else:
            unscheduled.append(unit)

    schedule = [ScheduledDay(day=day, sessions=sessions) for day, sessions in zip(days, sessions_by_day)]
    return schedule, unscheduled


def build_schedule_plan(students: Iterable[Any], raw_constraints: Any) -> SchedulerPlanResult:
    roster = [to_roster_student(item) for item in students]
    constraints = sanitize_constraints(raw_constraints)
    selected_days = select_days(constraints)

    warnings: list[str] = []
    if not constraints.classHours:
        warnings.append(EMPTY_CLASS_HOURS_WARNING)
    if len(selected_days) < constraints.daysPerWeek:
        warnings.append(
            f"Only {len(selected_days)} teaching day(s) available after off-day preferences. "
            "Reduce days/week or remove off days."
        )

    groups = split_students_into_groups(roster, constraints.filters)
    batches = build_batches(groups, constraints.studentsPerHour)
    demand = build_demand(constraints, batches, roster)
    schedule, unscheduled = place_demand(demand, selected_days, constraints)

    if unscheduled:
        warnings.append(
            f"Could not place {len(unscheduled)} session(s). "
            "Increase days per week, classes per day, or reduce required hours."
        )

    logger.debug(
        "Planned %d of %d session(s) across %d day(s) for %d student(s)",
        len(demand) - len(unscheduled),
        len(demand),
        len(selected_days),
        len(roster),
    )

    return SchedulerPlanResult(
        constraints=constraints,
        totals=PlanTotals(
            totalStudents=len(roster),
            totalGroups=len(groups),
            totalBatches=len(batches),
            requiredSessions=len(demand),
            availableSessions=len(selected_days) * constraints.classesPerDay,
            scheduledSessions=len(demand) - len(unscheduled),
            unscheduledSessions=len(unscheduled),
        ),
        schedule=schedule,
        unscheduled=[
            UnscheduledSession(
                className=unit.class_name,
                board=unit.batch.board,
                grade=unit.batch.grade,
                studentIds=list(unit.batch.student_ids),
            )
            for unit in unscheduled
        ],
        warnings=warnings,
    )
