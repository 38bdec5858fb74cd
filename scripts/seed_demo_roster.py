"""Seed a demo teacher with a small roster and a weekly calendar.

Run:
  PYTHONPATH=backend python scripts/seed_demo_roster.py
"""

from __future__ import annotations

from datetime import date
import os

from sqlalchemy import select

from tuition_planner.core.security import get_password_hash
from tuition_planner.db.bootstrap import ensure_runtime_schema_compatibility
from tuition_planner.db.session import SessionLocal
from tuition_planner.models.recurring_schedule import RecurringSchedule, RecurringScheduleDay, WeekDay
from tuition_planner.models.student import Student
from tuition_planner.models.teacher import Teacher
from tuition_planner.models.user import User, UserRole

DEFAULT_PASSWORD = os.getenv("DEMO_PASSWORD", "DemoPass123!")
TEACHER_EMAIL = os.getenv("DEMO_TEACHER_EMAIL", "teacher.demo@example.com").strip() or "teacher.demo@example.com"

DEMO_STUDENTS = [
    {"name": "Aarav", "board": "CBSE", "grade": "8", "school": "Green Valley", "num_of_classes_per_week": 4},
    {"name": "Diya", "board": "CBSE", "grade": "8", "school": "Green Valley", "num_of_classes_per_week": 4},
    {"name": "Kabir", "board": "CBSE", "grade": "9", "school": "Sunrise Public", "num_of_classes_per_week": 3},
    {"name": "Meera", "board": "ICSE", "grade": "8", "school": "St. Mary's", "num_of_classes_per_week": 5},
    {"name": "Rohan", "board": "ICSE", "grade": "8", "school": "St. Mary's", "num_of_classes_per_week": None},
]

DEMO_SLOTS = [
    ("16:00", "17:00", [WeekDay.MON, WeekDay.WED, WeekDay.FRI]),
    ("17:00", "18:00", [WeekDay.MON, WeekDay.WED, WeekDay.FRI]),
    ("10:00", "11:00", [WeekDay.SAT]),
]


def _upsert_teacher() -> int:
    with SessionLocal() as session:
        user = session.execute(select(User).where(User.email == TEACHER_EMAIL)).scalar_one_or_none()
        if user is None:
            user = User(
                name="Demo Teacher",
                email=TEACHER_EMAIL,
                hashed_password=get_password_hash(DEFAULT_PASSWORD),
                role=UserRole.teacher,
                is_active=True,
            )
            session.add(user)
            session.flush()
        teacher = session.execute(select(Teacher).where(Teacher.user_id == user.id)).scalar_one_or_none()
        if teacher is None:
            teacher = Teacher(user_id=user.id)
            session.add(teacher)
        session.commit()
        session.refresh(teacher)
        return teacher.id


def _seed_roster(teacher_id: int) -> int:
    created = 0
    with SessionLocal() as session:
        existing = set(
            session.execute(select(Student.name).where(Student.teacher_id == teacher_id)).scalars().all()
        )
        for item in DEMO_STUDENTS:
            if item["name"] in existing:
                continue
            session.add(Student(teacher_id=teacher_id, **item))
            created += 1
        session.commit()
    return created


def _seed_slots(teacher_id: int) -> int:
    with SessionLocal() as session:
        has_slots = session.execute(
            select(RecurringSchedule.id).where(RecurringSchedule.teacher_id == teacher_id).limit(1)
        ).scalar_one_or_none()
        if has_slots is not None:
            return 0
        for start_time, end_time, days in DEMO_SLOTS:
            session.add(
                RecurringSchedule(
                    teacher_id=teacher_id,
                    start_time=start_time,
                    end_time=end_time,
                    start_date=date.today(),
                    max_students=4,
                    days=[RecurringScheduleDay(day=day) for day in days],
                )
            )
        session.commit()
    return len(DEMO_SLOTS)


def main() -> None:
    ensure_runtime_schema_compatibility()
    teacher_id = _upsert_teacher()
    students_created = _seed_roster(teacher_id)
    slots_created = _seed_slots(teacher_id)

    print("\nDemo roster ready:")
    print(f"  - teacher: {TEACHER_EMAIL} (teacher id {teacher_id})")
    print(f"  - students created: {students_created}")
    print(f"  - recurring slots created: {slots_created}")
    print(f"\nPassword: {DEFAULT_PASSWORD}")


if __name__ == "__main__":
    main()
