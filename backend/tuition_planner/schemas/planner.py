from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

DAY_ORDER: tuple[str, ...] = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")

DayCode = Literal["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]
ParserKind = Literal["ai-sdk", "fallback", "direct-constraints"]


class ClassHourConstraint(BaseModel):
    className: str = Field(min_length=1, max_length=60)
    # Merged duplicates may sum past the per-entry cap of 40.
    hoursPerWeek: int = Field(ge=1)


class SchedulerFilters(BaseModel):
    sameBoardOnly: bool = True
    sameGradeOnly: bool = True


class SchedulerConstraints(BaseModel):
    daysPerWeek: int = Field(default=5, ge=1, le=7)
    classesPerDay: int = Field(default=4, ge=1, le=24)
    studentsPerHour: int = Field(default=4, ge=1, le=100)
    classHours: list[ClassHourConstraint] = Field(default_factory=list)
    filters: SchedulerFilters = Field(default_factory=SchedulerFilters)
    offDays: list[DayCode] = Field(default_factory=list)
    preferredDays: list[DayCode] = Field(default_factory=list)


class ScheduledSession(BaseModel):
    slotIndex: int = Field(ge=1)
    className: str
    board: str | None = None
    grade: str | None = None
    studentIds: list[int]
    studentCount: int


class ScheduledDay(BaseModel):
    day: DayCode
    sessions: list[ScheduledSession] = Field(default_factory=list)


class UnscheduledSession(BaseModel):
    className: str
    board: str | None = None
    grade: str | None = None
    studentIds: list[int]


class PlanTotals(BaseModel):
    totalStudents: int
    totalGroups: int
    totalBatches: int
    requiredSessions: int
    availableSessions: int
    scheduledSessions: int
    unscheduledSessions: int


class SchedulerPlanResult(BaseModel):
    constraints: SchedulerConstraints
    totals: PlanTotals
    schedule: list[ScheduledDay]
    unscheduled: list[UnscheduledSession]
    warnings: list[str]


class PlanRequest(BaseModel):
    prompt: str | None = Field(default=None, max_length=4000)
    constraints: dict[str, Any] | None = None


class PlanResponse(BaseModel):
    parser: ParserKind
    parserReason: str | None = None
    plan: SchedulerPlanResult


class ApplyPlanRequest(BaseModel):
    # Normalized row by row in plan_persistence; invalid rows are skipped.
    plan: dict[str, Any]


class AppliedAssignment(BaseModel):
    scheduleId: int
    day: DayCode
    studentId: int


class ApplyPlanResponse(BaseModel):
    success: bool
    appliedAssignments: list[AppliedAssignment]
    appliedCount: int
    warnings: list[str]


class CreateMissingSlotsRequest(BaseModel):
    plan: dict[str, Any]
    hoursPerClass: float | None = None
    studentsPerClass: float | None = None


class CreatedSlot(BaseModel):
    day: DayCode
    startTime: str
    endTime: str


class CreateMissingSlotsResponse(BaseModel):
    success: bool
    createdCount: int
    createdSlots: list[CreatedSlot]
