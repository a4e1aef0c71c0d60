"""Push a spreadsheet grid export to the timetable service's /automate route.

The grid file is the JSON the spreadsheet automation produces:
  {"rows": [{"values": [...], "bgColors": [...], "fgColors": [...]}, ...],
   "names": {...}}   # optional; omit to keep the names already stored

Run with: python scripts/push_grid.py grid.json
Target:   python scripts/push_grid.py grid.json --url https://timetable.example.com

Connection errors and 5xx responses are retried; 4xx responses (bad grid,
no coloured groups, wrong password) are not.

Exit codes:
  0 = stored (group count on stdout)
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys

import requests
from dotenv import load_dotenv
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

load_dotenv()

SERVICE_URL = os.getenv("TIMETABLE_URL", "http://localhost:3000")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "changeme")


class TransientPushError(Exception):
    """Network failure or 5xx; worth another attempt."""


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Push a timetable grid JSON file to the service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("grid_file", help="Path to the grid JSON file.")
    parser.add_argument(
        "--url",
        type=str,
        default=SERVICE_URL,
        help=f"Service base URL (default: {SERVICE_URL}).",
    )
    parser.add_argument(
        "--attempts",
        type=int,
        default=3,
        help="Maximum attempts for transient failures (default: 3).",
    )
    return parser.parse_args()


def push_grid(base_url: str, payload: dict, attempts: int = 3) -> dict:
    """POST the grid, retrying transient failures.

    Returns:
        Parsed JSON response, e.g. {"ok": true, "groups": 12}.

    Raises:
        RuntimeError: On a 4xx response.
        TransientPushError: If every attempt failed transiently.
    """

    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, max=10),
        retry=retry_if_exception_type(TransientPushError),
        reraise=True,
    )
    def _post() -> dict:
        try:
            resp = requests.post(
                f"{base_url.rstrip('/')}/automate",
                json=payload,
                headers={"X-Admin-Password": ADMIN_PASSWORD},
                timeout=30,
            )
        except requests.RequestException as e:
            _log(f"  request failed: {e}")
            raise TransientPushError(str(e)) from e
        if resp.status_code >= 500:
            _log(f"  server error {resp.status_code}: {resp.text}")
            raise TransientPushError(f"HTTP {resp.status_code}")
        if resp.status_code != 200:
            try:
                message = resp.json().get("error", resp.text)
            except ValueError:
                message = resp.text
            raise RuntimeError(f"HTTP {resp.status_code}: {message}")
        return resp.json()

    return _post()


def main() -> int:
    args = _parse_args()
    try:
        with open(args.grid_file, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _log(f"Cannot read grid file: {e}")
        return 1

    if not isinstance(payload, dict) or not isinstance(payload.get("rows"), list):
        _log("Grid file must be a JSON object with a \"rows\" array")
        return 1

    _log(f"Pushing {len(payload.get('rows', []))} rows to {args.url}")
    try:
        result = push_grid(args.url, payload, attempts=args.attempts)
    except (RuntimeError, TransientPushError) as e:
        _log(f"Push failed: {e}")
        return 1

    print(result.get("groups", 0))
    return 0


if __name__ == "__main__":
    sys.exit(main())
