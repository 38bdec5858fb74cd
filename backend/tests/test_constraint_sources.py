from datetime import date
import json
from types import SimpleNamespace

from tuition_planner.core.config import Settings
from tuition_planner.services import constraint_sources
from tuition_planner.services.constraint_sources import (
    extract_constraints_with_llm,
    merge_constraints,
    resolve_constraints,
    resolve_relative_days,
)
from tuition_planner.services.scheduler_constraints import sanitize_constraints

# 2026-10-19 is a Monday.
MONDAY = date(2026, 10, 19)


def llm_settings(**overrides):
    return Settings(planner_llm_enabled=True, openai_api_key="sk-test", **overrides)


def fake_client(content):
    def create(**kwargs):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def test_relative_days_become_weekday_names():
    assert resolve_relative_days("Cancel today's class and move tomorrow", MONDAY) == (
        "Cancel Monday class and move Tuesday"
    )
    assert resolve_relative_days("TODAY is off", date(2026, 10, 25)) == "Sunday is off"
    assert resolve_relative_days("todays", MONDAY) == "todays"


def test_merge_overrides_fields_and_filters_individually():
    parsed = sanitize_constraints(
        {
            "daysPerWeek": 3,
            "classHours": [{"className": "Math", "hoursPerWeek": 2}],
            "filters": {"sameBoardOnly": False, "sameGradeOnly": True},
        }
    )
    merged = merge_constraints(
        parsed,
        {"daysPerWeek": 6, "filters": {"sameGradeOnly": False}, "classHours": []},
    )
    assert merged.daysPerWeek == 6
    assert merged.filters.sameBoardOnly is False
    assert merged.filters.sameGradeOnly is False
    assert [(item.className, item.hoursPerWeek) for item in merged.classHours] == [("Math", 2)]


def test_merge_replaces_class_hours_and_accepts_snake_case():
    parsed = sanitize_constraints({"classHours": [{"className": "Math", "hoursPerWeek": 2}]})
    merged = merge_constraints(
        parsed,
        {"class_hours": [{"className": "Physics", "hoursPerWeek": 1}], "students_per_hour": "2"},
    )
    assert [item.className for item in merged.classHours] == ["Physics"]
    assert merged.studentsPerHour == 2
    assert merge_constraints(parsed, None) is parsed


def test_resolve_without_prompt_uses_direct_constraints():
    resolved = resolve_constraints(
        prompt="   ",
        overrides={"daysPerWeek": 2},
        settings=Settings(planner_llm_enabled=False),
        today=MONDAY,
    )
    assert resolved.parser == "direct-constraints"
    assert resolved.reason is None
    assert resolved.constraints.daysPerWeek == 2


def test_resolve_falls_back_when_llm_is_disabled():
    resolved = resolve_constraints(
        prompt="Cancel today's classes and reassign to Saturday",
        overrides={"studentsPerHour": 3},
        settings=Settings(planner_llm_enabled=False, openai_api_key="sk-test"),
        today=MONDAY,
    )
    assert resolved.parser == "fallback"
    assert resolved.reason == "llm-disabled"
    assert "MON" in resolved.constraints.offDays
    assert "SAT" in resolved.constraints.preferredDays
    assert resolved.constraints.studentsPerHour == 3


def test_resolve_reports_llm_failure(monkeypatch):
    monkeypatch.setattr(constraint_sources, "extract_constraints_with_llm", lambda prompt, settings: None)
    resolved = resolve_constraints(prompt="Math: 2 hours", overrides=None, settings=llm_settings(), today=MONDAY)
    assert resolved.parser == "fallback"
    assert resolved.reason == "llm-failed"
    assert resolved.constraints.classHours[0].className == "Math"


def test_llm_reply_is_sanitized(monkeypatch):
    reply = {
        "daysPerWeek": 9,
        "classesPerDay": 2,
        "studentsPerHour": 3,
        "classHours": [{"className": "Chemistry", "hoursPerWeek": 2}],
        "filters": {"sameBoardOnly": True, "sameGradeOnly": False},
    }
    monkeypatch.setattr(constraint_sources, "_build_client", lambda settings: fake_client(json.dumps(reply)))

    resolved = resolve_constraints(prompt="Chemistry twice a week", overrides=None, settings=llm_settings(), today=MONDAY)
    assert resolved.parser == "ai-sdk"
    assert resolved.reason is None
    assert resolved.constraints.daysPerWeek == 7
    assert resolved.constraints.classHours[0].className == "Chemistry"
    assert resolved.constraints.filters.sameGradeOnly is False


def test_llm_reply_missing_keys_or_invalid_json_is_rejected(monkeypatch):
    monkeypatch.setattr(
        constraint_sources, "_build_client", lambda settings: fake_client(json.dumps({"daysPerWeek": 3}))
    )
    assert extract_constraints_with_llm("Math", llm_settings()) is None

    monkeypatch.setattr(constraint_sources, "_build_client", lambda settings: fake_client("not json"))
    assert extract_constraints_with_llm("Math", llm_settings()) is None


def test_llm_is_skipped_without_api_key(monkeypatch):
    def fail(settings):
        raise AssertionError("client should not be built")

    monkeypatch.setattr(constraint_sources, "_build_client", fail)
    assert extract_constraints_with_llm("Math", Settings(planner_llm_enabled=True, openai_api_key=None)) is None
