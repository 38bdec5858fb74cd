from collections import Counter

from tuition_planner.schemas.planner import SchedulerFilters
from tuition_planner.services.schedule_planner import (
    EMPTY_CLASS_HOURS_WARNING,
    RosterStudent,
    StudentBatch,
    _pick_students_for_batch,
    build_batches,
    build_schedule_plan,
    select_days,
    split_students_into_groups,
    to_roster_student,
)
from tuition_planner.services.scheduler_constraints import sanitize_constraints


def cbse_roster(count, grade="8"):
    return [RosterStudent(id=index, board="CBSE", grade=grade) for index in range(1, count + 1)]


def math_constraints(**overrides):
    return {"classHours": [{"className": "Math", "hoursPerWeek": 2}], **overrides}


def sessions_by_day(plan):
    return {day.day: day.sessions for day in plan.schedule}


def test_five_cbse_students_form_one_group_and_two_batches():
    plan = build_schedule_plan(cbse_roster(5), math_constraints())

    assert plan.totals.totalStudents == 5
    assert plan.totals.totalGroups == 1
    assert plan.totals.totalBatches == 2
    assert plan.totals.requiredSessions == 4
    assert plan.totals.availableSessions == 20
    assert plan.totals.scheduledSessions == 4
    assert plan.totals.unscheduledSessions == 0
    assert plan.warnings == []

    by_day = sessions_by_day(plan)
    assert list(by_day) == ["MON", "TUE", "WED", "THU", "FRI"]
    assert [session.studentIds for session in by_day["MON"]] == [[1, 2, 3, 4]]
    assert [session.studentIds for session in by_day["TUE"]] == [[1, 2, 3, 4]]
    assert [session.studentIds for session in by_day["WED"]] == [[5]]
    assert [session.studentIds for session in by_day["THU"]] == [[5]]
    assert by_day["FRI"] == []
    assert all(session.board == "CBSE" and session.grade == "8" for day in plan.schedule for session in day.sessions)


def test_quota_limited_cbse_roster_over_three_days():
    roster = [
        RosterStudent(id=index, board="CBSE", grade="10th", num_of_classes_per_week=2) for index in range(1, 6)
    ]
    plan = build_schedule_plan(
        roster,
        {
            "daysPerWeek": 3,
            "classesPerDay": 2,
            "studentsPerHour": 4,
            "classHours": [{"className": "Math", "hoursPerWeek": 2}],
            "filters": {"sameBoardOnly": True, "sameGradeOnly": True},
        },
    )

    assert plan.totals.totalGroups == 1
    assert plan.totals.totalBatches == 2
    assert plan.totals.requiredSessions == 4
    assert plan.totals.scheduledSessions + plan.totals.unscheduledSessions == plan.totals.requiredSessions
    assert all(session.className == "Math" for day in plan.schedule for session in day.sessions)

    by_day = sessions_by_day(plan)
    assert [session.studentIds for session in by_day["MON"]] == [[1, 2, 3, 4], [5]]
    assert [session.studentIds for session in by_day["TUE"]] == [[1, 2, 3, 4]]
    assert [session.studentIds for session in by_day["WED"]] == [[5]]


def test_empty_class_hours_returns_empty_schedule_with_warning():
    plan = build_schedule_plan(cbse_roster(3), {"classHours": []})

    assert plan.warnings == [EMPTY_CLASS_HOURS_WARNING]
    assert plan.totals.requiredSessions == 0
    assert plan.totals.scheduledSessions == 0
    assert all(day.sessions == [] for day in plan.schedule)
    assert plan.unscheduled == []


def test_off_and_preferred_days_drive_day_selection():
    constraints = sanitize_constraints({"offDays": ["MON"], "preferredDays": ["SAT"], "daysPerWeek": 1})
    assert select_days(constraints) == ["SAT"]

    constraints = sanitize_constraints({"preferredDays": ["FRI", "MON"]})
    assert select_days(constraints) == ["MON", "FRI", "TUE", "WED", "THU"]


def test_preferred_rank_decides_first_placement():
    plan = build_schedule_plan(
        [RosterStudent(id=1, board="CBSE", grade="8")],
        {"classHours": [{"className": "Math", "hoursPerWeek": 1}], "preferredDays": ["FRI", "MON"]},
    )
    by_day = sessions_by_day(plan)
    assert [session.className for session in by_day["FRI"]] == ["Math"]
    assert by_day["MON"] == []


def test_too_few_days_after_off_days_is_reported():
    plan = build_schedule_plan(
        cbse_roster(1),
        math_constraints(offDays=["WED", "THU", "FRI", "SAT", "SUN"], daysPerWeek=5),
    )
    assert [day.day for day in plan.schedule] == ["MON", "TUE"]
    assert (
        "Only 2 teaching day(s) available after off-day preferences. Reduce days/week or remove off days."
        in plan.warnings
    )


def test_students_per_hour_two_splits_five_students_into_two_two_one():
    groups = split_students_into_groups(cbse_roster(5), SchedulerFilters())
    batches = build_batches(groups, 2)
    assert [len(batch.student_ids) for batch in batches] == [2, 2, 1]
    assert [batch.batch_id for batch in batches] == ["CBSE|8#1", "CBSE|8#2", "CBSE|8#3"]


def test_grouping_keys_sort_and_merge_dimensions():
    roster = [
        RosterStudent(id=1, board="ICSE", grade="8"),
        RosterStudent(id=2, board=None, grade="8"),
        RosterStudent(id=3, board="CBSE", grade="9"),
        RosterStudent(id=4, board="CBSE", grade="8"),
    ]
    groups = split_students_into_groups(roster, SchedulerFilters())
    assert [group.key for group in groups] == ["CBSE|8", "CBSE|9", "ICSE|8", "UNKNOWN_BOARD|8"]
    assert groups[-1].board is None

    merged = split_students_into_groups(roster, SchedulerFilters(sameBoardOnly=False, sameGradeOnly=True))
    assert [group.key for group in merged] == ["ANY_BOARD|8", "ANY_BOARD|9"]
    assert merged[0].student_ids == (1, 2, 4)
    assert merged[0].board is None
    assert merged[0].grade == "8"


def test_grouping_purity_in_sessions():
    roster = [
        RosterStudent(id=1, board="CBSE", grade="8"),
        RosterStudent(id=2, board="ICSE", grade="8"),
        RosterStudent(id=3, board="CBSE", grade="9"),
        RosterStudent(id=4, board="ICSE", grade="8"),
    ]
    by_id = {student.id: student for student in roster}
    plan = build_schedule_plan(roster, math_constraints())
    for day in plan.schedule:
        for session in day.sessions:
            assert {by_id[student_id].board for student_id in session.studentIds} == {session.board}
            assert {by_id[student_id].grade for student_id in session.studentIds} == {session.grade}


def test_weekly_quota_limits_appearances():
    roster = [
        RosterStudent(id=1, board="CBSE", grade="8", num_of_classes_per_week=1),
        RosterStudent(id=2, board="CBSE", grade="8"),
        RosterStudent(id=3, board="CBSE", grade="8", num_of_classes_per_week=0),
    ]
    plan = build_schedule_plan(roster, {"classHours": [{"className": "Math", "hoursPerWeek": 3}]})

    appearances = Counter(
        student_id for day in plan.schedule for session in day.sessions for student_id in session.studentIds
    )
    assert appearances[1] == 1
    assert appearances[2] == 3
    assert appearances[3] == 0
    assert plan.totals.requiredSessions == 3


def test_unplaceable_sessions_are_reported_without_retry():
    plan = build_schedule_plan(
        cbse_roster(1),
        {"classHours": [{"className": "Math", "hoursPerWeek": 5}], "daysPerWeek": 2},
    )
    assert plan.totals.requiredSessions == 5
    assert plan.totals.scheduledSessions == 2
    assert plan.totals.unscheduledSessions == 3
    assert len(plan.unscheduled) == 3
    assert plan.unscheduled[0].className == "Math"
    assert plan.unscheduled[0].studentIds == [1]
    assert plan.warnings == [
        "Could not place 3 session(s). Increase days per week, classes per day, or reduce required hours."
    ]


def test_capacity_and_batch_collision_invariants():
    roster = [
        RosterStudent(id=1, board="CBSE", grade="8", num_of_classes_per_week=1),
        RosterStudent(id=2, board="CBSE", grade="8"),
        RosterStudent(id=3, board="CBSE", grade="8", num_of_classes_per_week=2),
    ] + [RosterStudent(id=20 + index, board="ICSE", grade="10") for index in range(5)]
    constraints = {
        "classHours": [
            {"className": "Math", "hoursPerWeek": 3},
            {"className": "Science", "hoursPerWeek": 2},
        ],
        "daysPerWeek": 4,
        "classesPerDay": 3,
        "studentsPerHour": 3,
    }
    plan = build_schedule_plan(roster, constraints)

    sanitized = sanitize_constraints(constraints)
    batches = build_batches(split_students_into_groups(roster, sanitized.filters), sanitized.studentsPerHour)
    batch_of = {student_id: batch.batch_id for batch in batches for student_id in batch.student_ids}

    cbse_subsets = {
        tuple(session.studentIds) for day in plan.schedule for session in day.sessions if session.board == "CBSE"
    }
    assert len(cbse_subsets) > 1

    for day in plan.schedule:
        assert len(day.sessions) <= 3
        assert [session.slotIndex for session in day.sessions] == list(range(1, len(day.sessions) + 1))
        day_batches = []
        for session in day.sessions:
            assert session.studentCount == len(session.studentIds) <= 3
            owners = {batch_of[student_id] for student_id in session.studentIds}
            assert len(owners) == 1
            day_batches.append(owners.pop())
        assert len(day_batches) == len(set(day_batches))

    placed = sum(len(day.sessions) for day in plan.schedule)
    assert placed + len(plan.unscheduled) == plan.totals.requiredSessions
    assert plan.totals.scheduledSessions == placed


def test_plan_is_deterministic():
    roster = cbse_roster(7) + [RosterStudent(id=50, board="ICSE", grade="8")]
    constraints = {
        "classHours": [{"className": "Science", "hoursPerWeek": 2}, {"className": "Math", "hoursPerWeek": 3}],
        "studentsPerHour": 3,
        "preferredDays": ["SAT"],
    }
    first = build_schedule_plan(roster, constraints)
    second = build_schedule_plan(list(roster), dict(constraints))
    assert first.model_dump() == second.model_dump()


def test_demand_is_sorted_by_class_name():
    plan = build_schedule_plan(
        cbse_roster(1),
        {
            "classHours": [{"className": "Science", "hoursPerWeek": 1}, {"className": "Math", "hoursPerWeek": 1}],
            "daysPerWeek": 2,
        },
    )
    by_day = sessions_by_day(plan)
    assert [session.className for session in by_day["MON"]] == ["Math"]
    assert [session.className for session in by_day["TUE"]] == ["Science"]


def test_pick_rotates_from_last_chosen_student():
    batch = StudentBatch(batch_id="CBSE|8#1", board="CBSE", grade="8", student_ids=(1, 2, 3))
    remaining = {1: 5, 2: 5, 3: 5}
    cursors: dict[str, int] = {}

    assert _pick_students_for_batch(batch, limit=2, remaining=remaining, cursors=cursors) == [1, 2]
    assert cursors["CBSE|8#1"] == 2
    assert _pick_students_for_batch(batch, limit=2, remaining=remaining, cursors=cursors) == [3, 1]
    assert cursors["CBSE|8#1"] == 1
    assert remaining == {1: 3, 2: 4, 3: 4}

    exhausted = {1: 0, 2: 0, 3: 0}
    assert _pick_students_for_batch(batch, limit=2, remaining=exhausted, cursors={}) == []


def test_roster_entries_accept_mappings_and_strip_labels():
    student = to_roster_student({"id": "7", "board": "  CBSE ", "grade": "   ", "numOfClassesPerWeek": 2})
    assert student == RosterStudent(id=7, board="CBSE", grade=None, num_of_classes_per_week=2)


def test_roster_quota_strings_are_coerced():
    assert to_roster_student({"id": 1, "numOfClassesPerWeek": "2"}).num_of_classes_per_week == 2
    assert to_roster_student({"id": 2, "numOfClassesPerWeek": "abc"}).num_of_classes_per_week is None
    assert to_roster_student({"id": 3, "numOfClassesPerWeek": -4}).num_of_classes_per_week == 0

    plan = build_schedule_plan(
        [{"id": 1, "board": "CBSE", "grade": "8", "numOfClassesPerWeek": "1"}],
        {"classHours": [{"className": "Math", "hoursPerWeek": 3}]},
    )
    assert plan.totals.requiredSessions == 1
