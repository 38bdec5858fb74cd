from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
import json
import logging
import re
from typing import Any

from openai import OpenAI

from tuition_planner.core.config import Settings
from tuition_planner.schemas.planner import ParserKind, SchedulerConstraints
from tuition_planner.services.prompt_parser import parse_constraints_from_prompt_fallback
from tuition_planner.services.scheduler_constraints import as_mapping, has_field, pick, sanitize_constraints

logger = logging.getLogger(__name__)

CONSTRAINT_FIELDS = (
    "daysPerWeek",
    "classesPerDay",
    "studentsPerHour",
    "classHours",
    "filters",
    "offDays",
    "preferredDays",
)
FILTER_FIELDS = ("sameBoardOnly", "sameGradeOnly")

REQUIRED_LLM_KEYS = ("daysPerWeek", "classesPerDay", "studentsPerHour", "classHours", "filters")

LLM_INSTRUCTIONS = "\n".join(
    [
        "Extract scheduling constraints from this prompt.",
        "Return JSON only with these keys:",
        "daysPerWeek, classesPerDay, studentsPerHour, classHours, filters.",
        "daysPerWeek is 1-7, classesPerDay is 1-24, studentsPerHour is 1-100.",
        "classHours is an array of { className, hoursPerWeek } with hoursPerWeek 1-40.",
        "filters contains booleans sameBoardOnly and sameGradeOnly.",
    ]
)

RELATIVE_DAY_PATTERN = re.compile(r"\b(today|tomorrow)(?:'s)?\b", re.IGNORECASE)


@dataclass(frozen=True)
class ResolvedConstraints:
    constraints: SchedulerConstraints
    parser: ParserKind
    reason: str | None = None


def resolve_relative_days(prompt: str, today: date) -> str:
    """Replace 'today'/'tomorrow' with weekday names so the day patterns can see them."""

    def substitute(match: re.Match[str]) -> str:
        offset = 0 if match.group(1).lower() == "today" else 1
        return (today + timedelta(days=offset)).strftime("%A")

    return RELATIVE_DAY_PATTERN.sub(substitute, prompt)


def _build_client(settings: Settings) -> OpenAI:
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.openai_timeout_seconds,
    )


def extract_constraints_with_llm(prompt: str, settings: Settings) -> SchedulerConstraints | None:
    if not settings.llm_configured:
        return None

    try:
        client = _build_client(settings)
        completion = client.chat.completions.create(
            model=settings.openai_model,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": LLM_INSTRUCTIONS},
                {"role": "user", "content": f"Prompt: {prompt}"},
            ],
        )
        content = completion.choices[0].message.content or ""
        payload = json.loads(content)
    except Exception:
        logger.warning("LLM constraint extraction failed, falling back to pattern parser", exc_info=True)
        return None

    if not isinstance(payload, dict) or any(key not in payload for key in REQUIRED_LLM_KEYS):
        logger.warning("LLM constraint extraction returned an incomplete object: %s", sorted(as_mapping(payload)))
        return None
    return sanitize_constraints(payload)


def merge_constraints(parsed: SchedulerConstraints, incoming: dict[str, Any] | None) -> SchedulerConstraints:
    """Overlay caller supplied fields on parsed constraints and re-sanitize.

    Top-level fields win outright, ``filters`` merge key by key and a non-empty
    ``classHours`` list replaces the parsed one instead of extending it.
    """
    if not isinstance(incoming, dict):
        return parsed

    base = parsed.model_dump()
    explicit = {field: pick(incoming, field) for field in CONSTRAINT_FIELDS if has_field(incoming, field)}
    incoming_filters = as_mapping(explicit.get("filters"))

    merged: dict[str, Any] = {**base, **explicit}
    merged["filters"] = {
        **base["filters"],
        **{field: pick(incoming_filters, field) for field in FILTER_FIELDS if has_field(incoming_filters, field)},
    }
    incoming_hours = explicit.get("classHours")
    merged["classHours"] = (
        incoming_hours if isinstance(incoming_hours, list) and incoming_hours else base["classHours"]
    )
    return sanitize_constraints(merged)


def resolve_constraints(
    *,
    prompt: str | None,
    overrides: dict[str, Any] | None,
    settings: Settings,
    today: date,
) -> ResolvedConstraints:
    text = (prompt or "").strip()
    if text:
        text = resolve_relative_days(text, today)
        llm_result = extract_constraints_with_llm(text, settings)
        if llm_result is not None:
            resolved = ResolvedConstraints(constraints=llm_result, parser="ai-sdk")
        else:
            reason = "llm-failed" if settings.llm_configured else "llm-disabled"
            resolved = ResolvedConstraints(
                constraints=parse_constraints_from_prompt_fallback(text),
                parser="fallback",
                reason=reason,
            )
    else:
        resolved = ResolvedConstraints(constraints=sanitize_constraints(overrides), parser="direct-constraints")

    return ResolvedConstraints(
        constraints=merge_constraints(resolved.constraints, overrides),
        parser=resolved.parser,
        reason=resolved.reason,
    )
