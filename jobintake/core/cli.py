from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from jobintake.core.errors import IntakeError
from jobintake.core.orchestrator import BatchOrchestrator
from jobintake.core.pipeline import IntakePipeline
from jobintake.utils.config import load_config, section
from jobintake.utils.logging_utils import setup_logging


YES_NO = ("yes", "no")


def _print(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fair-chance job board intake")
    parser.add_argument("--config", default="config.yaml")
    parser.add_argument("--log-dir", default="data/logs")
    parser.add_argument("--verbose", action="store_true", help="Also print warnings to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    submit = sub.add_parser("submit", help="Analyze a job URL and add it to the board")
    submit.add_argument("url")

    manual = sub.add_parser("manual", help="Analyze a pasted job description")
    manual.add_argument("url")
    manual.add_argument("--description-file", default="-", help="File holding the description, '-' for stdin")

    bulk = sub.add_parser("bulk", help="Submit one URL per line")
    bulk.add_argument("file", help="File of URLs, '-' for stdin")

    anyway = sub.add_parser("add-anyway", help="Add a URL for manual review without analysis")
    anyway.add_argument("url")

    listing = sub.add_parser("list", help="List active jobs")
    listing.add_argument("--grade")
    listing.add_argument("--category")
    listing.add_argument("--hirer", help="Frequent-hirer slug")
    listing.add_argument("--diploma", choices=YES_NO, help="Only jobs that do or do not require a diploma")
    listing.add_argument("--license", choices=YES_NO, help="Only jobs that do or do not require a driver's license")

    sub.add_parser("errors", help="Show the intake error log")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(args.log_dir, section(config, "logging").get("level", "INFO"), console=args.verbose)
    pipeline = IntakePipeline.from_config(config)

    try:
        if args.command == "submit":
            outcome = pipeline.submit(args.url)
            if outcome.needs_manual_entry:
                _print({"needsManualEntry": True, "handlingMode": outcome.mode.value, "trackingKey": outcome.tracking_key})
            else:
                _print({"success": True, "job": outcome.job.to_dict()})
        elif args.command == "manual":
            job = pipeline.submit_manual(args.url, _read_text(args.description_file))
            _print({"success": True, "job": job.to_dict()})
        elif args.command == "bulk":
            result = BatchOrchestrator.from_config(config, pipeline).run(_read_text(args.file))
            _print(
                {
                    "summary": result.summary(),
                    **result.counts(),
                    "needsManual": result.needs_manual,
                    "errors": [asdict(report) for report in result.errors],
                }
            )
        elif args.command == "add-anyway":
            _print({"success": True, "job": pipeline.add_anyway(args.url).to_dict()})
        elif args.command == "list":
            filters = {}
            if args.grade:
                filters["grade"] = args.grade
            if args.category:
                filters["category"] = args.category
            if args.hirer:
                filters["frequent_hirer_tag"] = args.hirer
            if args.diploma:
                filters["requires_diploma"] = args.diploma == "yes"
            if args.license:
                filters["requires_license"] = args.license == "yes"
            expiry_days = int(section(config, "listing").get("expiry_days", 21))
            _print([job.to_dict() for job in pipeline.repository.list_active(expiry_days=expiry_days, filters=filters)])
        elif args.command == "errors":
            _print([asdict(report) for report in pipeline.repository.list_failures()])
    except IntakeError as exc:
        _print(exc.to_body())
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
