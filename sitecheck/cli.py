from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from sitecheck.checks.results import CheckResult
from sitecheck.config import settings
from sitecheck.errors import EnvironmentSetupError
from sitecheck.models import CheckTarget
from sitecheck.runner import exit_code, run_once

logger = logging.getLogger(__name__)

EXIT_SETUP_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sitecheck",
        description="Run HTTP smoke checks against configured targets.",
    )
    p.add_argument("--targets", help="Path to a targets.yml registry")
    p.add_argument("--base-url", help="Generate the built-in homepage/posts targets for this site")
    p.add_argument("--url", action="append", default=[], help="Ad-hoc target URL (repeatable)")
    p.add_argument("--expect-status", type=int, default=200, help="Expected status for --url targets")
    p.add_argument("--body", choices=["none", "posts"], default="none", help="Body schema for --url targets")
    p.add_argument("--timeout", type=float, help="Request timeout in seconds")
    p.add_argument("--workers", type=int, help="Number of targets checked in parallel")
    p.add_argument("--json", action="store_true", help="Print results as JSON on stdout")
    return p


def _adhoc_targets(args: argparse.Namespace) -> list[CheckTarget]:
    try:
        return [
            CheckTarget(
                id=f"url-{i}",
                url=url,
                expected_status=args.expect_status,
                timeout_s=(
                    args.timeout
                    if args.timeout is not None
                    else settings.SITECHECK_TIMEOUT_SECONDS
                ),
                body=args.body,
            )
            for i, url in enumerate(args.url, start=1)
        ]
    except ValidationError as exc:
        raise EnvironmentSetupError(f"Invalid --url target: {exc}") from exc


def _run(args: argparse.Namespace) -> list[CheckResult]:
    adhoc = _adhoc_targets(args) if args.url else None
    return run_once(
        args.targets,
        base_url=args.base_url,
        timeout_s=args.timeout,
        workers=args.workers,
        targets=adhoc,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        logging.basicConfig(
            level=settings.SITECHECK_LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        results = _run(args)
    except EnvironmentSetupError as exc:
        logger.error("Environment setup failed: %s", exc)
        return EXIT_SETUP_ERROR

    if args.json:
        json.dump([r.to_dict() for r in results], sys.stdout, indent=2)
        sys.stdout.write("\n")
    return exit_code(results)


if __name__ == "__main__":
    sys.exit(main())
