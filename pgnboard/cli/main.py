from __future__ import annotations

import argparse
from typing import List, Optional

import uvicorn

from ..protocol.http.app import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgnboard", description="Serve the pgnboard rules engine over local HTTP"
    )
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Logging level for the app and uvicorn",
    )
    parser.add_argument(
        "--max-sessions",
        type=int,
        default=None,
        help="Evict least recently used games beyond this many (default: unbounded)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    app = create_app(log_level=args.log_level, max_sessions=args.max_sessions)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
