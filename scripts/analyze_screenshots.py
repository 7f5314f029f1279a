"""Send battle screenshots to a running analysis proxy from the command line.

Example usages::

    # Analyse one battle from two screenshots and print stats and grade.
    python -m scripts.analyze_screenshots analyze report-1.png report-2.png \
        --base-url https://analyzer.example.com

    # Show the proxy's configured limits and today's usage.
    python -m scripts.analyze_screenshots usage
"""

from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import os
import sys
from pathlib import Path
from typing import Any

from battle_analyzer.clients import AnalyzerApiClient
from battle_analyzer.core.errors import AnalyzerError
from battle_analyzer.services import BattleAnalyzer, ImagePayload

EXIT_OK = 0
EXIT_USAGE_ERROR = 2
EXIT_QUOTA_ERROR = 3
EXIT_RUNTIME_ERROR = 5

DEFAULT_BASE_URL = "http://localhost:8000"


def _load_image(path: Path) -> ImagePayload:
    media_type, _ = mimetypes.guess_type(path.name)
    return ImagePayload(data=path.read_bytes(), media_type=media_type, filename=path.name)


async def _analyze(client: AnalyzerApiClient, paths: list[Path]) -> dict[str, Any]:
    images = [_load_image(path) for path in paths]
    report = await BattleAnalyzer(client).analyze(images)
    return report.to_payload()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Analyse Last War battle screenshots through a deployed proxy."
    )
    parser.add_argument(
        "--base-url",
        default=os.getenv("ANALYZER_BASE_URL", DEFAULT_BASE_URL),
        help="Root URL of the analysis proxy (default: %(default)s).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Seconds to wait for the proxy before giving up.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyse screenshots of one battle and print the report."
    )
    analyze_parser.add_argument("images", nargs="+", type=Path, help="Screenshot files.")

    subparsers.add_parser("usage", help="Print the proxy's usage counters.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    client = AnalyzerApiClient(args.base_url, timeout=args.timeout)

    try:
        if args.command == "analyze":
            missing = [str(path) for path in args.images if not path.is_file()]
            if missing:
                print(f"Screenshot not found: {', '.join(missing)}", file=sys.stderr)
                return EXIT_USAGE_ERROR
            result = asyncio.run(_analyze(client, args.images))
        else:
            result = asyncio.run(client.fetch_usage())
    except AnalyzerError as exc:
        print(json.dumps(exc.to_payload(), indent=2), file=sys.stderr)
        return EXIT_QUOTA_ERROR if exc.status_code == 429 else EXIT_RUNTIME_ERROR

    print(json.dumps(result, indent=2))
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
