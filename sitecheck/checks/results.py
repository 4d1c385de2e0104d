from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sitecheck.models import CheckTarget


@dataclass(frozen=True)
class CheckResult:
    target: CheckTarget
    passed: bool
    latency_ms: int
    observed_status: int | None = None
    decoded_body: Any | None = None
    record_count: int | None = None
    error: str | None = None
    error_kind: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.target.id,
            "url": str(self.target.url),
            "expected_status": self.target.expected_status,
            "passed": self.passed,
            "latency_ms": self.latency_ms,
            "observed_status": self.observed_status,
            "record_count": self.record_count,
            "error": self.error,
            "error_kind": self.error_kind,
        }
