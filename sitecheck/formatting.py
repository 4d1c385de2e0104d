from __future__ import annotations

from typing import Iterable

from sitecheck.checks.results import CheckResult


def format_result(result: CheckResult) -> str:
    t = result.target
    verdict = "PASS" if result.passed else "FAIL"
    line = f"{verdict} {t.id} {t.url}"
    if result.observed_status is not None:
        line += f" status={result.observed_status}"
    line += f" ({result.latency_ms} ms)"
    if result.error:
        line += f": {result.error}"
    elif result.record_count is not None:
        noun = t.body if t.body != "none" else "records"
        line += f": Found {result.record_count} {noun}"
    return line


def format_summary(results: Iterable[CheckResult]) -> str:
    results = list(results)
    failed = [r.target.id for r in results if not r.passed]
    line = f"{len(results) - len(failed)}/{len(results)} checks passed"
    if failed:
        line += f"; failed: {', '.join(failed)}"
    return line
