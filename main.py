"""Dungeon DJ launcher: serves the API with uvicorn.

    python main.py --port 13013 --data-dir ./data --reload
"""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Dungeon DJ API server")
    parser.add_argument("--data-dir", type=Path,
                        help="Where games are stored (default: DATA_DIR or ./data)")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("BACKEND_PORT", "13013")))
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument("--log-level", default="info", choices=LOG_LEVELS)
    return parser


def main():
    args = build_parser().parse_args()

    # Settings are read inside the app factory, which may run in a reloader subprocess
    if args.data_dir is not None:
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())

    print(f"Dungeon DJ API on http://localhost:{args.port}/api")
    uvicorn.run(
        "backend.app:default_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
