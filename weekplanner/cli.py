"""Command-line interface for the weekplanner engine.

Examples:
    weekplanner generate --input request.json --out result.json --csv slots.csv
    weekplanner validate --input request.json --result result.json
    weekplanner summarize --csv slots.csv
"""

from __future__ import annotations

import argparse
import logging

from .assembler import result_to_payload, schedule_from_payload
from .config import load_config
from .domain.db import get_session
from .domain.repositories import GeneratedScheduleRepository
from .engine.orchestrator import ScheduleEngine
from .errors import InputValidationError
from .io.export_csv import export_slots_csv, has_overlap, read_slots_csv, summarize_slots
from .io.payload import load_request, load_result, write_result
from .models import EMPTY_DAY, WeeklySchedule
from .services.availability import compute_availability
from .services.normalizer import normalize_request
from .validator import validate_schedule


def _print_issues(error: InputValidationError) -> None:
    print(f"[ERROR] {len(error.issues)} invalid field(s) in request")
    for issue in error.issues:
        print(f"  - {issue['field']}: {issue['message']}")


def _cmd_generate(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    payload = load_request(args.input)
    try:
        result = ScheduleEngine(cfg).generate(payload)
    except InputValidationError as e:
        _print_issues(e)
        raise SystemExit(2)
    output = result_to_payload(result)

    print(
        f"[OK] Week {output['weekNumber']}/{output['year']} for team {output['teamId']}: "
        f"strategy={output['strategy']} feasible={output['feasible']} "
        f"({output['candidatesEvaluated']} candidate(s), {output['executionTimeMs']:.1f} ms)"
    )
    for violation in output["violations"]:
        print(f"[WARN] {violation['type']} {violation['day'] or ''} {violation['message']}")
    for warning in output["warnings"]:
        print(f"[INFO] {warning}")

    if args.out:
        write_result(args.out, output)
        print(f"[INFO] Result written to {args.out}")
    if args.csv:
        count = export_slots_csv(output, args.csv)
        print(f"[INFO] Exported {count} slots to {args.csv}")
    if args.db:
        session = get_session(args.db)
        try:
            record = GeneratedScheduleRepository.save_result(session, output)
            print(f"[INFO] Stored generated schedule #{record.id} in {args.db}")
        finally:
            session.close()


def _cmd_validate(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    try:
        request = normalize_request(load_request(args.input), cfg)
    except InputValidationError as e:
        _print_issues(e)
        raise SystemExit(2)
    stored = schedule_from_payload(load_result(args.result)["schedule"])

    known = {emp.id for emp in request.employees}
    unknown = sorted(set(stored.employee_ids) - known)
    if unknown:
        raise SystemExit(f"Result has employees missing from the request: {', '.join(unknown)}")
    schedule = WeeklySchedule(
        {emp.id: stored.days.get(emp.id, (EMPTY_DAY,) * 7) for emp in request.employees}
    )

    availability = compute_availability(request, cfg)
    violations = validate_schedule(request, availability, schedule, cfg)
    if violations:
        for violation in violations:
            print(f"[FAIL] {violation.kind.value} {violation.employee_id or '-'}: {violation.message}")
        raise SystemExit(1)
    print("[OK] Validation passed.")


def _cmd_summarize(args: argparse.Namespace) -> None:
    df = read_slots_csv(args.csv)
    if has_overlap(df):
        print("[WARN] Overlapping slots found")
    print(summarize_slots(df).to_string(index=False))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="weekplanner")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log engine details")
    sub = parser.add_subparsers(dest="command", required=True)

    g = sub.add_parser("generate", help="Generate the schedule of one team-week")
    g.add_argument("--input", required=True, help="Request JSON")
    g.add_argument("--config", help="Engine config (YAML or JSON)")
    g.add_argument("--out", help="Write the result JSON here")
    g.add_argument("--csv", help="Export slots to this CSV")
    g.add_argument("--db", help="Store the result in this database URL")
    g.set_defaults(func=_cmd_generate)

    v = sub.add_parser("validate", help="Validate a result JSON against its request")
    v.add_argument("--input", required=True, help="Request JSON")
    v.add_argument("--result", required=True, help="Result JSON")
    v.add_argument("--config", help="Engine config (YAML or JSON)")
    v.set_defaults(func=_cmd_validate)

    s = sub.add_parser("summarize", help="Summarize a slots CSV")
    s.add_argument("--csv", required=True)
    s.set_defaults(func=_cmd_summarize)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
