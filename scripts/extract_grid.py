"""Run colour-group extraction on a grid JSON file without the service.

Useful for checking a new spreadsheet export before pushing it.

Run with: python scripts/extract_grid.py grid.json
Table:    python scripts/extract_grid.py grid.json --table
Output:   python scripts/extract_grid.py grid.json --output data/snapshot.json

Exit codes:
  0 = success (JSON or table on stdout, or file written)
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pydantic import ValidationError  # noqa: E402

from src.timetable.cycle import today_str  # noqa: E402
from src.timetable.errors import NoDataFoundError  # noqa: E402
from src.timetable.extraction import extract_timetable, serialize_groups  # noqa: E402
from src.timetable.models import CellRow  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract colour groups from a timetable grid JSON file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("grid_file", help="Path to the grid JSON file.")
    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--table",
        action="store_true",
        help="Print a human-readable table instead of JSON.",
    )
    output_group.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the snapshot JSON to this path.",
    )
    return parser.parse_args()


def _format_table(groups: dict) -> str:
    lines = []
    for key, group in groups.items():
        lines.append(f"{key.serialize()}")
        for period in sorted(group.slots):
            for entry in group.slots[period]:
                lines.append(f"  P{period}  {entry.d1:<20} {entry.d2:<10} {entry.d3}")
    return "\n".join(lines)


def main() -> int:
    args = _parse_args()
    try:
        with open(args.grid_file, encoding="utf-8") as f:
            payload = json.load(f)
        rows = payload["rows"] if isinstance(payload, dict) else payload
        grid = [CellRow.model_validate(row) for row in rows]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
        _log(f"Cannot read grid file: {e}")
        return 1

    try:
        groups = extract_timetable(grid)
    except NoDataFoundError as e:
        _log(str(e))
        return 1

    if args.table:
        print(_format_table(groups))
        return 0

    snapshot = {
        "date": today_str(),
        "map": serialize_groups(groups),
        "names": (payload.get("names") or {}) if isinstance(payload, dict) else {},
    }
    text = json.dumps(snapshot, indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        _log(f"Wrote {len(groups)} groups to {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
