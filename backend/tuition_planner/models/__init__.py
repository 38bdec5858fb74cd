from tuition_planner.models.recurring_schedule import (  # noqa: F401
    RecurringDayAssignment,
    RecurringSchedule,
    RecurringScheduleDay,
    WeekDay,
)
from tuition_planner.models.student import Student  # noqa: F401
from tuition_planner.models.teacher import Teacher  # noqa: F401
from tuition_planner.models.user import User, UserRole  # noqa: F401
