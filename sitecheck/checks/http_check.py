from __future__ import annotations

import json
import logging
import time
from collections.abc import Sized
from typing import Any

import requests
from pydantic import TypeAdapter, ValidationError
from urllib3.exceptions import HTTPError, ReadTimeoutError

from sitecheck.checks.results import CheckResult
from sitecheck.errors import (
    CheckError,
    CheckTimeout,
    ConnectionFailure,
    DecodeError,
    UnexpectedStatus,
)
from sitecheck.models import BODY_SCHEMAS, CheckTarget, PostList

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
BODY_CHUNK_SIZE = 64 * 1024


def _timeouts(target: CheckTarget, timeout_s: float | None) -> tuple[float, float]:
    if timeout_s is None:
        timeout_s = target.timeout_s or DEFAULT_TIMEOUT_S
    elif timeout_s <= 0:
        raise ValueError(f"timeout_s must be positive, got {timeout_s}")
    connect_timeout = target.connect_timeout_override or timeout_s
    return connect_timeout, timeout_s


def _adapter(target: CheckTarget, decode_into: Any) -> TypeAdapter:
    if decode_into is None:
        return BODY_SCHEMAS.get(target.body, PostList)
    if isinstance(decode_into, TypeAdapter):
        return decode_into
    return TypeAdapter(decode_into)


def _translate(
    exc: requests.RequestException | HTTPError,
    connect_timeout: float,
    read_timeout: float,
) -> CheckError:
    if isinstance(exc, requests.ConnectTimeout):
        return CheckTimeout(f"timeout after {connect_timeout}s connecting: {exc}")
    # requests wraps body read timeouts in ConnectionError.
    cause = exc.args[0] if exc.args else None
    timed_out = isinstance(exc, (requests.Timeout, ReadTimeoutError))
    if timed_out or isinstance(cause, ReadTimeoutError):
        return CheckTimeout(f"timeout after {read_timeout}s: {exc}")
    if isinstance(exc, requests.RequestException):
        return ConnectionFailure(
            f"Failed to send GET request: {exc.__class__.__name__}: {exc}"
        )
    return ConnectionFailure(
        f"Failed to read response body: {exc.__class__.__name__}: {exc}"
    )


def _read_body(resp: requests.Response, deadline: float, read_timeout: float) -> bytes:
    # The socket timeout bounds each read; the deadline bounds the whole body.
    chunks: list[bytes] = []
    while True:
        chunk = resp.raw.read1(BODY_CHUNK_SIZE, decode_content=True)
        if not chunk:
            break
        chunks.append(chunk)
        if time.perf_counter() > deadline:
            raise CheckTimeout(f"timeout after {read_timeout}s reading response body")
    return b"".join(chunks)


def _decode(raw: bytes, adapter: TypeAdapter) -> Any:
    try:
        data = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise DecodeError(f"Failed to parse JSON response: {exc}") from exc
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first["loc"]) or "<root>"
        raise DecodeError(
            f"Failed to parse JSON response: {exc.error_count()} validation "
            f"error(s), first at {loc}: {first['msg']}"
        ) from exc


def _evaluate(
    r: requests.Response,
    target: CheckTarget,
    adapter: TypeAdapter | None,
    deadline: float,
    read_timeout: float,
) -> Any:
    mismatch = None
    if r.status_code != target.expected_status:
        mismatch = UnexpectedStatus(target.expected_status, r.status_code)
    if adapter is None:
        if mismatch is not None:
            raise mismatch
        return None

    # The body is decoded whatever the status so both problems get reported.
    try:
        body = _decode(_read_body(r, deadline, read_timeout), adapter)
    except DecodeError as e:
        if mismatch is not None:
            raise DecodeError(f"{mismatch}; {e}") from e
        raise
    if mismatch is not None:
        raise mismatch
    return body


def _get(
    target: CheckTarget,
    timeout_s: float | None,
    adapter: TypeAdapter | None,
) -> CheckResult:
    connect_timeout, read_timeout = _timeouts(target, timeout_s)
    observed: int | None = None
    start = time.perf_counter()
    try:
        try:
            with requests.get(
                str(target.url), timeout=(connect_timeout, read_timeout), stream=True
            ) as r:
                observed = r.status_code
                body = _evaluate(r, target, adapter, start + read_timeout, read_timeout)
        except (requests.RequestException, HTTPError) as exc:
            raise _translate(exc, connect_timeout, read_timeout) from exc
    except CheckError as e:
        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.debug("Check %s failed: %s", target.id, e)
        return CheckResult(
            target=target,
            passed=False,
            latency_ms=latency_ms,
            observed_status=observed,
            error=str(e),
            error_kind=e.kind,
        )

    latency_ms = int((time.perf_counter() - start) * 1000)
    record_count = None
    if isinstance(body, Sized) and not isinstance(body, (str, bytes)):
        record_count = len(body)
    return CheckResult(
        target=target,
        passed=True,
        latency_ms=latency_ms,
        observed_status=observed,
        decoded_body=body,
        record_count=record_count,
    )


def check_status(target: CheckTarget, timeout_s: float | None = None) -> CheckResult:
    """Issue one GET and compare the status code with the expected one."""
    return _get(target, timeout_s, adapter=None)


def check_json_body(
    target: CheckTarget,
    decode_into: Any = None,
    timeout_s: float | None = None,
) -> CheckResult:
    """Status check plus JSON decoding of the body.

    ``decode_into`` may be a pydantic ``TypeAdapter`` or any type pydantic can
    validate (e.g. ``list[Post]``). When omitted the target's ``body`` schema
    is used, falling back to a list of posts. The body is decoded even when
    the status mismatches so a broken payload is reported alongside it; the
    record count is informational.
    """
    return _get(target, timeout_s, adapter=_adapter(target, decode_into))


def run_target(target: CheckTarget, timeout_s: float | None = None) -> CheckResult:
    if target.body != "none":
        return check_json_body(target, timeout_s=timeout_s)
    return check_status(target, timeout_s=timeout_s)
