from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence

from sitecheck.checks.http_check import run_target
from sitecheck.checks.results import CheckResult
from sitecheck.config import settings
from sitecheck.formatting import format_result, format_summary
from sitecheck.models import CheckTarget
from sitecheck.registry import load_targets

logger = logging.getLogger(__name__)


@contextmanager
def harness(
    path: str | Path | None = None,
    base_url: str | None = None,
    timeout_s: float | None = None,
    targets: Sequence[CheckTarget] | None = None,
) -> Iterator[list[CheckTarget]]:
    """Load the targets, yield them to the caller, and always tear down.

    Passing ``targets`` skips registry loading. Setup errors
    (``EnvironmentSetupError``) propagate before any check runs.
    """
    logger.info("Starting smoke checks...")
    if targets is None:
        targets = load_targets(
            path if path is not None else settings.SITECHECK_TARGETS_PATH,
            base_url=base_url or settings.SITECHECK_BASE_URL,
            timeout_s=timeout_s if timeout_s is not None else settings.SITECHECK_TIMEOUT_SECONDS,
        )
    targets = list(targets)
    logger.info("Setup complete: %d target(s) configured", len(targets))
    try:
        yield targets
    finally:
        logger.info("Cleaning up after smoke checks...")


def _run_guarded(target: CheckTarget) -> CheckResult:
    start = time.perf_counter()
    try:
        return run_target(target)
    except Exception as e:
        # One broken target must not take the batch down with it.
        logger.exception("Unexpected error while checking %s", target.id)
        return CheckResult(
            target=target,
            passed=False,
            latency_ms=int((time.perf_counter() - start) * 1000),
            error=f"{e.__class__.__name__}: {e}",
            error_kind="internal_error",
        )


def run_batch(targets: Sequence[CheckTarget], workers: int = 1) -> list[CheckResult]:
    if workers <= 1 or len(targets) <= 1:
        return [_run_guarded(t) for t in targets]

    with ThreadPoolExecutor(max_workers=min(workers, len(targets))) as pool:
        return list(pool.map(_run_guarded, targets))


def log_results(results: Sequence[CheckResult]) -> None:
    for res in results:
        if res.passed:
            logger.info("%s", format_result(res))
        else:
            logger.warning("%s", format_result(res))
    logger.info("%s", format_summary(results))


def run_once(
    path: str | Path | None = None,
    base_url: str | None = None,
    timeout_s: float | None = None,
    workers: int | None = None,
    targets: Sequence[CheckTarget] | None = None,
) -> list[CheckResult]:
    if workers is None:
        workers = settings.SITECHECK_WORKERS
    with harness(path, base_url=base_url, timeout_s=timeout_s, targets=targets) as loaded:
        results = run_batch(loaded, workers=workers)
        log_results(results)
    return results


def exit_code(results: Sequence[CheckResult]) -> int:
    if not results:
        logger.warning("No checks were run")
        return 0
    return 0 if all(r.passed for r in results) else 1
