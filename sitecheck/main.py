import logging

from fastapi import FastAPI, HTTPException

from sitecheck.api_schemas import (
    CheckResultResponse,
    HealthResponse,
    RunRequest,
    RunResponse,
    TargetResponse,
)
from sitecheck.config import settings
from sitecheck.errors import EnvironmentSetupError
from sitecheck.registry import load_targets
from sitecheck.runner import run_once

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Sitecheck",
    version="1.0.0",
    description=(
        "HTTP smoke-check harness that loads targets from targets.yml, "
        "runs GET checks and reports a verdict per target."
    ),
)


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint used by probes and orchestration.",
)
def health():
    return {"status": "ok"}


@app.get(
    "/api/targets",
    response_model=list[TargetResponse],
    tags=["targets"],
    summary="Configured Targets",
    description="Returns targets with registry defaults applied.",
)
def targets():
    try:
        loaded = load_targets(
            settings.SITECHECK_TARGETS_PATH,
            base_url=settings.SITECHECK_BASE_URL,
            timeout_s=settings.SITECHECK_TIMEOUT_SECONDS,
        )
    except EnvironmentSetupError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [{**t.model_dump(), "url": str(t.url)} for t in loaded]


@app.post(
    "/api/checks/run",
    response_model=RunResponse,
    tags=["checks"],
    summary="Run Checks",
    description="Runs every configured target once and returns the verdicts.",
)
def run_checks(request: RunRequest | None = None):
    request = request or RunRequest()
    try:
        results = run_once(timeout_s=request.timeout_s, workers=request.workers)
    except EnvironmentSetupError as exc:
        logger.error("Check run aborted: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    failed = sum(1 for r in results if not r.passed)
    return RunResponse(
        passed=failed == 0,
        total=len(results),
        failed=failed,
        results=[CheckResultResponse(**r.to_dict()) for r in results],
    )
