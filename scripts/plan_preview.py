"""Print a weekly plan for a roster stored in a JSON file.

The roster file holds a list of ``{"id", "board", "grade", "numOfClassesPerWeek"}``
objects. Constraints come from ``--prompt`` (pattern parser only, no LLM call),
``--constraints`` (a JSON file), or both, with the file taking precedence.

Run:
  PYTHONPATH=backend python scripts/plan_preview.py roster.json --prompt "Math 3 hours, 2 students per class"
"""

from __future__ import annotations

import argparse
from datetime import date
import json
import logging
from pathlib import Path

from tuition_planner.services.constraint_sources import merge_constraints, resolve_relative_days
from tuition_planner.services.prompt_parser import parse_constraints_from_prompt_fallback
from tuition_planner.services.scheduler_constraints import sanitize_constraints
from tuition_planner.services.schedule_planner import build_schedule_plan


def _load_json(path: str):
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("roster", help="JSON file with the student roster")
    parser.add_argument("--prompt", default="", help="free-text scheduling request")
    parser.add_argument("--constraints", help="JSON file with explicit constraints")
    parser.add_argument("--json", action="store_true", help="print the raw plan as JSON")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    roster = _load_json(args.roster)
    overrides = _load_json(args.constraints) if args.constraints else None
    prompt = args.prompt.strip()
    if prompt:
        parsed = parse_constraints_from_prompt_fallback(resolve_relative_days(prompt, date.today()))
        constraints = merge_constraints(parsed, overrides)
    else:
        constraints = sanitize_constraints(overrides)

    plan = build_schedule_plan(roster, constraints)
    if args.json:
        print(json.dumps(plan.model_dump(), indent=2))
        return

    totals = plan.totals
    print(
        f"{totals.totalStudents} student(s), {totals.totalGroups} group(s), {totals.totalBatches} batch(es); "
        f"{totals.scheduledSessions}/{totals.requiredSessions} session(s) placed"
    )
    for day in plan.schedule:
        print(f"\n{day.day}")
        for session in day.sessions:
            label = " ".join(part for part in (session.board, session.grade) if part) or "mixed"
            print(f"  {session.slotIndex}. {session.className} [{label}] students={session.studentIds}")
    for session in plan.unscheduled:
        print(f"\nunscheduled: {session.className} students={session.studentIds}")
    for warning in plan.warnings:
        print(f"\nwarning: {warning}")


if __name__ == "__main__":
    main()
