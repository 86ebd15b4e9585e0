"""Main entry point for the Xiangqi AI server."""

import argparse
import logging
import os
import uvicorn

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Xiangqi AI Server")
    parser.add_argument(
        "--depth",
        "-d",
        type=int,
        default=None,
        help="Search depth for the computer player (default: 3)",
    )
    parser.add_argument(
        "--time-limit",
        "-t",
        type=float,
        default=None,
        help="Search time budget in seconds (default: 3.0)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: info)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # api.py reads its settings from the environment at import time
    if args.depth is not None:
        os.environ["XIANGQI_SEARCH_DEPTH"] = str(args.depth)
    if args.time_limit is not None:
        os.environ["XIANGQI_TIME_LIMIT"] = str(args.time_limit)

    uvicorn.run(
        "api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )
