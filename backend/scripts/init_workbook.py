#!/usr/bin/env python3
"""Create the portal workbook used by STORE_BACKEND=workbook.

Run from the backend/ directory:

    python3 scripts/init_workbook.py [--output PATH] [--roster-csv CSV] [--force]

Writes the List (Roster) and Data (Detail) sheets with their header rows.
When --roster-csv is given, its rows are copied into List. CSV columns are
matched by header text the same way the service matches sheet headers, so
column order and wording may differ from the workbook's.
"""

from __future__ import annotations

import argparse
import csv
import logging
import os
import sys
from pathlib import Path
from typing import Any

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from openpyxl import Workbook  # noqa: E402

from profile_portal.core.config import Settings  # noqa: E402
from profile_portal.services.header_resolver import resolve_headers  # noqa: E402
from profile_portal.services.sheet_store import DETAIL_HEADERS, ROSTER_HEADERS  # noqa: E402

logger = logging.getLogger(__name__)


def read_roster_csv(path: Path) -> list[list[Any]]:
    """Return CSV rows rearranged into ROSTER_HEADERS column order."""
    with path.open(newline="", encoding="utf-8-sig") as f:
        rows = list(csv.reader(f))
    if not rows:
        return []

    source_map = resolve_headers(rows[0]).resolved()
    target_map = resolve_headers(ROSTER_HEADERS).resolved()
    missing = sorted(set(target_map) - set(source_map))
    if "hrms_id" in missing:
        raise ValueError(f"{path} has no HRMS ID column")
    if missing:
        logger.warning("CSV %s lacks columns for: %s", path, ", ".join(missing))

    result: list[list[Any]] = []
    for row in rows[1:]:
        if not any(cell.strip() for cell in row):
            continue
        out: list[Any] = [""] * len(ROSTER_HEADERS)
        for field, target in target_map.items():
            source = source_map.get(field)
            if source is not None and source < len(row):
                out[target] = row[source].strip()
        result.append(out)
    return result


def build_workbook(roster_sheet: str, detail_sheet: str, roster_rows: list[list[Any]]) -> Workbook:
    workbook = Workbook()
    roster = workbook.active
    roster.title = roster_sheet
    roster.append(ROSTER_HEADERS)
    for row in roster_rows:
        roster.append(row)

    detail = workbook.create_sheet(detail_sheet)
    detail.append(DETAIL_HEADERS)
    return workbook


def main(argv: list[str] | None = None) -> int:
    settings = Settings()

    parser = argparse.ArgumentParser(description="Create the portal workbook")
    parser.add_argument("--output", default=settings.WORKBOOK_PATH, help="Workbook path")
    parser.add_argument("--roster-csv", type=Path, default=None, help="CSV of roster rows to import")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing workbook")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    output = Path(args.output)
    if output.exists() and not args.force:
        logger.error("%s already exists (use --force to overwrite)", output)
        return 1

    roster_rows: list[list[Any]] = []
    if args.roster_csv:
        try:
            roster_rows = read_roster_csv(args.roster_csv)
        except (OSError, ValueError) as e:
            logger.error("Cannot import roster: %s", e)
            return 1
        logger.info("Read %d roster rows from %s", len(roster_rows), args.roster_csv)

    output.parent.mkdir(parents=True, exist_ok=True)
    workbook = build_workbook(settings.ROSTER_SHEET_NAME, settings.DETAIL_SHEET_NAME, roster_rows)
    workbook.save(output)
    logger.info("Wrote %s (%s, %s)", output, settings.ROSTER_SHEET_NAME, settings.DETAIL_SHEET_NAME)
    return 0


if __name__ == "__main__":
    sys.exit(main())
