from datetime import date
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from tuition_planner.api.deps import get_current_teacher_id, get_db, require_roles
from tuition_planner.core.config import get_settings
from tuition_planner.models.student import Student
from tuition_planner.models.user import User, UserRole
from tuition_planner.schemas.planner import (
    ApplyPlanRequest,
    ApplyPlanResponse,
    CreateMissingSlotsRequest,
    CreateMissingSlotsResponse,
    PlanRequest,
    PlanResponse,
)
from tuition_planner.services.constraint_sources import resolve_constraints
from tuition_planner.services.plan_persistence import apply_plan, create_missing_slots
from tuition_planner.services.schedule_planner import build_schedule_plan

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/schedule/plan", response_model=PlanResponse)
def plan_schedule(
    payload: PlanRequest,
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> PlanResponse:
    prompt = (payload.prompt or "").strip()
    if not prompt and payload.constraints is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide at least one of: prompt or constraints",
        )

    students = (
        db.execute(select(Student).where(Student.teacher_id == teacher_id).order_by(Student.id.asc()))
        .scalars()
        .all()
    )
    if not students:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No students found for this teacher")

    resolved = resolve_constraints(
        prompt=prompt,
        overrides=payload.constraints,
        settings=get_settings(),
        today=date.today(),
    )
    plan = build_schedule_plan(students, resolved.constraints)
    logger.info(
        "Generated plan for teacher %s with parser %s: %d scheduled, %d unscheduled",
        teacher_id,
        resolved.parser,
        plan.totals.scheduledSessions,
        plan.totals.unscheduledSessions,
    )
    return PlanResponse(parser=resolved.parser, parserReason=resolved.reason, plan=plan)


@router.post("/schedule/apply", response_model=ApplyPlanResponse)
def apply_schedule(
    payload: ApplyPlanRequest,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> ApplyPlanResponse:
    return apply_plan(db, teacher_id=teacher_id, plan=payload.plan)


@router.post("/schedule/create-missing-slots", response_model=CreateMissingSlotsResponse)
def create_missing_schedule_slots(
    payload: CreateMissingSlotsRequest,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> CreateMissingSlotsResponse:
    return create_missing_slots(
        db,
        teacher_id=teacher_id,
        plan=payload.plan,
        hours_per_class=payload.hoursPerClass,
        students_per_class=payload.studentsPerClass,
        settings=get_settings(),
        today=date.today(),
    )
