from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import date
from typing import Any, Dict, Optional

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print the team week-over-week performance summary as JSON.")
    parser.add_argument(
        "--reference-date",
        type=date.fromisoformat,
        default=None,
        help="Any date inside the week to summarize, YYYY-MM-DD (default: today).",
    )
    parser.add_argument("--year", type=int, default=None, help="Year of the business week to summarize.")
    parser.add_argument("--week", type=int, default=None, help="Business week number within --year.")
    parser.add_argument("--agent-id", default=None, help="Limit the summary to one agent.")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Environment file path (default: .env).",
    )
    return parser.parse_args()


def build_summary(
    reference_date: Optional[date],
    year: Optional[int],
    week: Optional[int],
    agent_id: Optional[str],
) -> Dict[str, Any]:
    from src.api.dependencies import get_reports_service
    from src.schemas.reports import WeeklySummaryFilters

    filters = WeeklySummaryFilters(reference_date=reference_date, year=year, week=week, agent_id=agent_id)
    summary = get_reports_service().get_weekly_summary(filters)
    return summary.model_dump(mode="json", by_alias=True)


def main() -> None:
    args = parse_args()
    load_env_file(args.env_file)
    result = build_summary(args.reference_date, args.year, args.week, args.agent_id)
    print(json.dumps(result, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
