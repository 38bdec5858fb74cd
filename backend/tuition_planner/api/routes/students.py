from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from tuition_planner.api.deps import get_current_teacher_id, get_db, require_roles
from tuition_planner.models.recurring_schedule import RecurringDayAssignment
from tuition_planner.models.student import Student
from tuition_planner.models.user import User, UserRole
from tuition_planner.schemas.student import StudentCreate, StudentOut, StudentUpdate

router = APIRouter()


def _get_owned_student(db: Session, student_id: int, teacher_id: int) -> Student:
    student = db.get(Student, student_id)
    if student is None or student.teacher_id != teacher_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


@router.get("/students", response_model=list[StudentOut])
def list_students(
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> list[StudentOut]:
    students = (
        db.execute(select(Student).where(Student.teacher_id == teacher_id).order_by(Student.name.asc(), Student.id.asc()))
        .scalars()
        .all()
    )
    return list(students)


@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> StudentOut:
    student = Student(teacher_id=teacher_id, **payload.model_dump())
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


@router.patch("/students/{student_id}", response_model=StudentOut)
def update_student(
    student_id: int,
    payload: StudentUpdate,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> StudentOut:
    student = _get_owned_student(db, student_id, teacher_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name cannot be empty")
    for key, value in data.items():
        setattr(student, key, value)
    db.commit()
    db.refresh(student)
    return student


@router.delete("/students/{student_id}")
def delete_student(
    student_id: int,
    current_user: User = Depends(require_roles(UserRole.teacher)),
    teacher_id: int = Depends(get_current_teacher_id),
    db: Session = Depends(get_db),
) -> dict:
    student = _get_owned_student(db, student_id, teacher_id)
    db.execute(delete(RecurringDayAssignment).where(RecurringDayAssignment.student_id == student.id))
    db.delete(student)
    db.commit()
    return {"success": True}
