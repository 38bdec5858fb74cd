from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from tuition_planner.db.base import Base


class WeekDay(str, Enum):
    MON = "MON"
    TUE = "TUE"
    WED = "WED"
    THU = "THU"
    FRI = "FRI"
    SAT = "SAT"
    SUN = "SUN"


class RecurringSchedule(Base):
    """One weekly slot of a teacher, enabled on one or more weekdays."""

    __tablename__ = "recurring_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.id", ondelete="CASCADE"), index=True, nullable=False
    )
    label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    max_students: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    days: Mapped[list["RecurringScheduleDay"]] = relationship(
        back_populates="schedule",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RecurringScheduleDay.id",
    )
    assignments: Mapped[list["RecurringDayAssignment"]] = relationship(
        back_populates="schedule", cascade="all, delete-orphan"
    )

    @property
    def day_codes(self) -> list[WeekDay]:
        return [item.day for item in self.days]


class RecurringScheduleDay(Base):
    __tablename__ = "recurring_schedule_days"
    __table_args__ = (
        UniqueConstraint("recurring_schedule_id", "day", name="uq_recurring_schedule_days_schedule_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recurring_schedule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recurring_schedules.id", ondelete="CASCADE"), index=True, nullable=False
    )
    day: Mapped[WeekDay] = mapped_column(SAEnum(WeekDay, name="week_day"), nullable=False)

    schedule: Mapped[RecurringSchedule] = relationship(back_populates="days")


class RecurringDayAssignment(Base):
    __tablename__ = "recurring_day_assignments"
    __table_args__ = (
        UniqueConstraint(
            "recurring_schedule_id",
            "day",
            "student_id",
            name="uq_recurring_day_assignments_schedule_day_student",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recurring_schedule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recurring_schedules.id", ondelete="CASCADE"), index=True, nullable=False
    )
    day: Mapped[WeekDay] = mapped_column(SAEnum(WeekDay, name="week_day"), nullable=False)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    schedule: Mapped[RecurringSchedule] = relationship(back_populates="assignments")
