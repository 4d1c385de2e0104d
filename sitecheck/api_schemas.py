from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Health status")


class TargetResponse(BaseModel):
    id: str
    url: str
    expected_status: int
    timeout_s: float | None = None
    connect_timeout_override: float | None = None
    body: str = "none"


class CheckResultResponse(BaseModel):
    id: str
    url: str
    expected_status: int
    passed: bool
    latency_ms: int
    observed_status: int | None = None
    record_count: int | None = None
    error: str | None = None
    error_kind: str | None = None


class RunResponse(BaseModel):
    passed: bool
    total: int
    failed: int
    results: list[CheckResultResponse]


class RunRequest(BaseModel):
    timeout_s: float | None = Field(default=None, gt=0)
    workers: int | None = Field(default=None, ge=1, le=32)
