from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tuition_planner.api.deps import get_current_teacher_id, get_db, require_roles
from tuition_planner.models.recurring_schedule import (
    RecurringDayAssignment,
    RecurringSchedule,
    RecurringScheduleDay,
)
from tuition_planner.models.student import Student
from tuition_planner.models.user import User, UserRole
from tuition_planner.schemas.recurring_schedule import (
    DayAssignmentCreate,
    DayAssignmentOut,
    RecurringScheduleCreate,
    RecurringScheduleOut,
)

router = APIRouter()


def _get_owned_schedule(db: Session, schedule_id: int, teacher_id: int) -> RecurringSchedule | None:
    schedule = db.get(RecurringSchedule, schedule_id)
    if schedule is None or schedule.teacher_id != teacher_id:
        return None
    return schedule


def _get_owned_student(db: Session, student_id: int, teacher_id: int) -> Student | None:
    student = db.get(Student, student_id)
    if student is None or student.teacher_id != teacher_id:
        return None
    return student


@router.get("/recurring-schedules", response_model=list[RecurringScheduleOut])
def list_recurring_schedules(
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> list[RecurringScheduleOut]:
    schedules = (
        db.execute(
            select(RecurringSchedule)
            .where(RecurringSchedule.teacher_id == teacher_id)
            .order_by(RecurringSchedule.start_time.asc(), RecurringSchedule.id.asc())
        )
        .scalars()
        .all()
    )
    return list(schedules)


@router.post("/recurring-schedules", response_model=RecurringScheduleOut, status_code=status.HTTP_201_CREATED)
def create_recurring_schedule(
    payload: RecurringScheduleCreate,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> RecurringScheduleOut:
    data = payload.model_dump(exclude={"days"})
    schedule = RecurringSchedule(
        teacher_id=teacher_id,
        days=[RecurringScheduleDay(day=day) for day in payload.days],
        **data,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule


@router.delete("/recurring-schedules/{schedule_id}")
def delete_recurring_schedule(
    schedule_id: int,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> dict:
    schedule = _get_owned_schedule(db, schedule_id, teacher_id)
    if schedule is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recurring schedule not found")
    db.delete(schedule)
    db.commit()
    return {"success": True}


@router.get("/recurring-day-assignments", response_model=list[DayAssignmentOut])
def list_day_assignments(
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> list[DayAssignmentOut]:
    assignments = (
        db.execute(
            select(RecurringDayAssignment)
            .join(RecurringSchedule, RecurringSchedule.id == RecurringDayAssignment.recurring_schedule_id)
            .where(RecurringSchedule.teacher_id == teacher_id)
            .order_by(RecurringDayAssignment.id.asc())
        )
        .scalars()
        .all()
    )
    return list(assignments)


@router.post(
    "/recurring-day-assignments",
    response_model=DayAssignmentOut,
    status_code=status.HTTP_201_CREATED,
)
def create_day_assignment(
    payload: DayAssignmentCreate,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> DayAssignmentOut:
    schedule = _get_owned_schedule(db, payload.recurring_schedule_id, teacher_id)
    student = _get_owned_student(db, payload.student_id, teacher_id)
    if schedule is None or student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    if payload.day not in schedule.day_codes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Day is not enabled for this schedule")

    same_slot = (
        RecurringDayAssignment.recurring_schedule_id == schedule.id,
        RecurringDayAssignment.day == payload.day,
    )
    existing = db.execute(
        select(RecurringDayAssignment.id).where(*same_slot, RecurringDayAssignment.student_id == student.id)
    ).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student already assigned to this slot")

    current_count = db.execute(select(func.count(RecurringDayAssignment.id)).where(*same_slot)).scalar_one()
    if current_count >= schedule.max_students:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slot is full")

    assignment = RecurringDayAssignment(recurring_schedule_id=schedule.id, day=payload.day, student_id=student.id)
    db.add(assignment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Student already assigned to this slot"
        ) from exc
    db.refresh(assignment)
    return assignment


@router.delete("/recurring-day-assignments")
def delete_day_assignment(
    payload: DayAssignmentCreate,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> dict:
    schedule = _get_owned_schedule(db, payload.recurring_schedule_id, teacher_id)
    student = _get_owned_student(db, payload.student_id, teacher_id)
    if schedule is None or student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    result = db.execute(
        delete(RecurringDayAssignment).where(
            RecurringDayAssignment.recurring_schedule_id == schedule.id,
            RecurringDayAssignment.day == payload.day,
            RecurringDayAssignment.student_id == student.id,
        )
    )
    db.commit()
    return {"success": result.rowcount > 0}
