"""Run the timetable HTTP service.

Run with: python scripts/run_server.py
Port:     python scripts/run_server.py --port 8080
JSON logs: LOG_JSON=true python scripts/run_server.py

Storage tier is chosen from the environment (.env supported):
  REDIS_URL   -> Redis (falls back to memory if unreachable at startup)
  STORE_PATH  -> single JSON file on disk
  neither     -> in-memory, lost on restart
"""

import argparse
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.timetable.config import get_config  # noqa: E402
from src.timetable.logging import setup_logging  # noqa: E402
from src.timetable.server import serve  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the timetable HTTP service.")
    parser.add_argument("--host", type=str, default=None, help="Interface to bind.")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on.")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    config = get_config()
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port

    setup_logging(json_output=config.log_json, log_level=config.log_level)
    serve(config)


if __name__ == "__main__":
    main()
