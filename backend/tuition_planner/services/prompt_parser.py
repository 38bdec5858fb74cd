"""Regex based constraint extraction used when no language model is available.

The parser only looks at the text it is given. Relative words such as
"today" or "tomorrow" must already be replaced with weekday names, see
``constraint_sources.resolve_relative_days``.
"""

from __future__ import annotations

import re

from tuition_planner.schemas.planner import ClassHourConstraint, SchedulerConstraints
from tuition_planner.services.scheduler_constraints import (
    DEFAULT_CLASSES_PER_DAY,
    DEFAULT_DAYS_PER_WEEK,
    DEFAULT_STUDENTS_PER_HOUR,
    MAX_CLASS_NAME_LENGTH,
    MAX_HOURS_PER_CLASS,
    clamp_int,
    sanitize_constraints,
)

GENERIC_CLASS_NAME = "General Class"

DAY_NAME_ALTERNATIVES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("MON", ("mon", "monday")),
    ("TUE", ("tue", "tues", "tuesday")),
    ("WED", ("wed", "wednesday")),
    ("THU", ("thu", "thur", "thurs", "thursday")),
    ("FRI", ("fri", "friday")),
    ("SAT", ("sat", "saturday")),
    ("SUN", ("sun", "sunday")),
)

DAY_TOKEN_TO_CODE: dict[str, str] = {
    token: code for code, tokens in DAY_NAME_ALTERNATIVES for token in tokens
}

DAY_MENTION_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (code, re.compile(rf"\b(?:{'|'.join(tokens)})\b", re.IGNORECASE))
    for code, tokens in DAY_NAME_ALTERNATIVES
)

TARGET_DAY_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (code, re.compile(rf"\bto\s+(?:{'|'.join(tokens)})\b", re.IGNORECASE))
    for code, tokens in DAY_NAME_ALTERNATIVES
)

DAYS_PER_WEEK_PATTERNS = (
    re.compile(r"(?:days?\s*per\s*week|for)\D{0,10}(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*days?\s*(?:a|per)\s*week", re.IGNORECASE),
)
CLASSES_PER_DAY_PATTERNS = (
    re.compile(r"(?:classes?\s*per\s*day|max\s*classes?\s*per\s*day)\D{0,10}(\d+)", re.IGNORECASE),
)
STUDENTS_PER_HOUR_PATTERNS = (
    re.compile(r"(?:students?\s*per\s*hour|per\s*hour)\D{0,10}(\d+)", re.IGNORECASE),
)
GENERIC_HOURS_PATTERNS = (
    re.compile(r"(?:hours?\s*per\s*class(?:es)?|each\s*class)\D{0,10}(\d+)", re.IGNORECASE),
)

CLASS_HOURS_PATTERN = re.compile(
    r"([A-Za-z][A-Za-z0-9\s]{1,30})\s*[:=-]\s*(\d+)\s*(?:h|hr|hrs|hour|hours)",
    re.IGNORECASE,
)
OFF_KEYWORD_PATTERN = re.compile(
    r"\b(?:off|day\s*off|no\s+class|no\s+classes|unavailable|leave|cancel|cancelled)\b"
)
MOVE_PAIR_PATTERN = re.compile(
    r"\b(?:move|shift|reassign|reschedule)\s+([a-z]+)\b[\s\S]{0,40}?\bto\s+([a-z]+)\b",
    re.IGNORECASE,
)
ACTIONABLE_PATTERN = re.compile(r"\b(?:reassign|reschedule|move|shift|assign)\b", re.IGNORECASE)

SAME_BOARD_PATTERN = re.compile(r"\bsame\s+board\b")
MIXED_BOARD_PATTERN = re.compile(r"\bmix(?:ed)?\s+board\b")
SAME_GRADE_PATTERN = re.compile(r"\bsame\s+grade\b")
MIXED_GRADE_PATTERN = re.compile(r"\bmix(?:ed)?\s+grade\b")
WHITESPACE_RUN = re.compile(r"\s+")


def parse_digits(digits: str) -> float:
    """Digit runs too long for an int parse come back as infinity for the caller to clamp."""
    return float(digits)


def find_numeric(prompt: str, patterns: tuple[re.Pattern[str], ...], fallback: int) -> float:
    for pattern in patterns:
        match = pattern.search(prompt)
        if match and match.group(1):
            return parse_digits(match.group(1))
    return fallback


def infer_class_hours(prompt: str) -> list[ClassHourConstraint]:
    entries: list[ClassHourConstraint] = []
    for match in CLASS_HOURS_PATTERN.finditer(prompt):
        name = WHITESPACE_RUN.sub(" ", match.group(1).strip())[:MAX_CLASS_NAME_LENGTH]
        if name:
            entries.append(
                ClassHourConstraint(
                    className=name,
                    hoursPerWeek=clamp_int(parse_digits(match.group(2)), 1, MAX_HOURS_PER_CLASS),
                )
            )
    if entries:
        return entries

    generic_hours = find_numeric(prompt, GENERIC_HOURS_PATTERNS, 1)
    return [
        ClassHourConstraint(
            className=GENERIC_CLASS_NAME,
            hoursPerWeek=clamp_int(generic_hours, 1, MAX_HOURS_PER_CLASS),
        )
    ]


def infer_off_days(prompt: str) -> list[str]:
    # The keyword may appear anywhere in the prompt; every mentioned weekday then counts as off.
    if not OFF_KEYWORD_PATTERN.search(prompt.lower()):
        return []
    return [code for code, pattern in DAY_MENTION_PATTERNS if pattern.search(prompt)]


def infer_move_days(prompt: str) -> tuple[list[str], list[str]]:
    source_days: list[str] = []
    target_days: list[str] = []
    for match in MOVE_PAIR_PATTERN.finditer(prompt):
        source = DAY_TOKEN_TO_CODE.get(match.group(1).lower())
        target = DAY_TOKEN_TO_CODE.get(match.group(2).lower())
        if source:
            source_days.append(source)
        if target:
            target_days.append(target)
    return list(dict.fromkeys(source_days)), list(dict.fromkeys(target_days))


def infer_preferred_days(prompt: str) -> list[str]:
    if not ACTIONABLE_PATTERN.search(prompt):
        return []
    return [code for code, pattern in TARGET_DAY_PATTERNS if pattern.search(prompt)]


def _mixing_flag(text: str, same: re.Pattern[str], mixed: re.Pattern[str]) -> bool:
    if same.search(text):
        return True
    if mixed.search(text):
        return False
    return True


def parse_constraints_from_prompt_fallback(prompt: str) -> SchedulerConstraints:
    normalized = prompt.lower()
    source_days, target_days = infer_move_days(prompt)

    return sanitize_constraints(
        {
            "daysPerWeek": clamp_int(find_numeric(prompt, DAYS_PER_WEEK_PATTERNS, DEFAULT_DAYS_PER_WEEK), 1, 7),
            "classesPerDay": clamp_int(
                find_numeric(prompt, CLASSES_PER_DAY_PATTERNS, DEFAULT_CLASSES_PER_DAY), 1, 24
            ),
            "studentsPerHour": clamp_int(
                find_numeric(prompt, STUDENTS_PER_HOUR_PATTERNS, DEFAULT_STUDENTS_PER_HOUR), 1, 100
            ),
            "classHours": infer_class_hours(prompt),
            "filters": {
                "sameBoardOnly": _mixing_flag(normalized, SAME_BOARD_PATTERN, MIXED_BOARD_PATTERN),
                "sameGradeOnly": _mixing_flag(normalized, SAME_GRADE_PATTERN, MIXED_GRADE_PATTERN),
            },
            "offDays": list(dict.fromkeys([*infer_off_days(prompt), *source_days])),
            "preferredDays": list(dict.fromkeys([*infer_preferred_days(prompt), *target_days])),
        }
    )
