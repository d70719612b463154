#!/usr/bin/env python3
"""
Atlas Performance Advisor Poller

Finds the primary process of an Atlas project and logs its slow queries and
suggested indexes from the last N hours to stdout.

Requirements:
    pip install requests python-dotenv

Usage:
    atlas-advisor --project-id PROJECT_ID --public-key KEY --private-key KEY --since 24
"""

import argparse
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from atlas_advisor.advisor import get_data
from atlas_advisor.client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, AtlasAPIClient
from atlas_advisor.exceptions import AdvisorError
from atlas_advisor.log import get_logger

load_dotenv()

DEFAULT_SINCE_HOURS = 24


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atlas-advisor",
        description="Log slow queries and suggested indexes for an Atlas project's primary",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument("--project-id", type=str, default=os.getenv("ATLAS_PROJECT_ID"),
                        help="MongoDB Atlas project ID")
    parser.add_argument("--public-key", type=str, default=os.getenv("ATLAS_PUBLIC_KEY"),
                        help="MongoDB Atlas public API key")
    parser.add_argument("--private-key", type=str, default=os.getenv("ATLAS_PRIVATE_KEY"),
                        help="MongoDB Atlas private API key")
    parser.add_argument("--since", type=float,
                        default=os.getenv("ATLAS_SINCE_HOURS", str(DEFAULT_SINCE_HOURS)),
                        help=f"Look back this many hours (default: {DEFAULT_SINCE_HOURS})")
    parser.add_argument("--base-url", type=str, default=os.getenv("ATLAS_BASE_URL", DEFAULT_BASE_URL),
                        help="Atlas Admin API base URL")
    parser.add_argument("--timeout", type=float,
                        default=os.getenv("ATLAS_REQUEST_TIMEOUT", str(DEFAULT_TIMEOUT)),
                        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT})")
    parser.add_argument("--log-level", type=str.upper, default=os.getenv("LOG_LEVEL", "INFO").upper(),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Log level (default: INFO)")
    parser.add_argument("--log-format", type=str, default=os.getenv("LOG_FORMAT", "text"),
                        choices=["text", "json"], help="Log line format (default: text)")
    parser.add_argument("--strict-status", action="store_true", default=_env_flag("ATLAS_STRICT_STATUS"),
                        help="Treat non-2xx responses as fatal request errors")
    parser.add_argument("--concurrent", action="store_true", default=_env_flag("ATLAS_CONCURRENT_FETCH"),
                        help="Fetch slow queries and suggested indexes in parallel")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not all([args.project_id, args.public_key, args.private_key]):
        print("Error: --project-id, --public-key, and --private-key are required")
        return 1

    logger = get_logger("atlas_advisor", level=args.log_level, fmt=args.log_format)
    client = AtlasAPIClient(args.public_key, args.private_key, base_url=args.base_url,
                            timeout=args.timeout, strict_status=args.strict_status)

    try:
        with client:
            get_data(args.project_id, args.public_key, args.private_key, args.since,
                     client=client, logger=logger, concurrent=args.concurrent)
    except AdvisorError as e:
        logger.critical(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
