from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from sitecheck.errors import EnvironmentSetupError
from sitecheck.models import CheckTarget, Registry

REGISTRY_PATH = Path(__file__).resolve().parents[1] / "targets.yml"

# Paths exercised by the original WordPress smoke suite.
BUILTIN_TARGETS = (
    ("homepage", "/", "none"),
    ("posts", "/wp-json/wp/v2/posts", "posts"),
)


def load_registry(path: Path = REGISTRY_PATH) -> Registry:
    path = Path(path)
    if not path.exists():
        raise EnvironmentSetupError(
            f"Missing targets file at {path}. Copy targets.example.yml to targets.yml and configure it."
        )

    try:
        data = yaml.safe_load(path.read_text()) or {}
        reg = Registry.model_validate(data)
    except yaml.YAMLError as exc:
        raise EnvironmentSetupError(f"Invalid YAML in {path}: {exc}") from exc
    except ValidationError as exc:
        raise EnvironmentSetupError(f"Invalid targets file {path}: {exc}") from exc

    # Ensure unique IDs
    seen = set()
    for t in reg.targets:
        if t.id in seen:
            raise EnvironmentSetupError(f"Duplicate target id: {t.id}")
        seen.add(t.id)

    return reg


def builtin_registry(base_url: str) -> Registry:
    base = base_url.rstrip("/")
    try:
        return Registry(
            targets=[
                CheckTarget(id=target_id, url=f"{base}{path}", body=body)
                for target_id, path, body in BUILTIN_TARGETS
            ]
        )
    except ValidationError as exc:
        raise EnvironmentSetupError(f"Invalid base URL {base_url!r}: {exc}") from exc


def apply_defaults(reg: Registry, timeout_s: float | None = None) -> list[CheckTarget]:
    """
    Return targets with registry defaults filled in.
    An explicit ``timeout_s`` overrides every target's timeout.
    """
    if timeout_s is not None and timeout_s <= 0:
        raise EnvironmentSetupError(f"Timeout must be positive, got {timeout_s}")

    d = reg.defaults
    out: list[CheckTarget] = []

    for t in reg.targets:
        update: dict = {}
        if timeout_s is not None:
            update["timeout_s"] = timeout_s
        elif t.timeout_s is None:
            update["timeout_s"] = d.timeout_s
        if "expected_status" not in t.model_fields_set:
            update["expected_status"] = d.expected_status
        try:
            out.append(CheckTarget.model_validate({**t.model_dump(mode="json"), **update}))
        except ValidationError as exc:
            raise EnvironmentSetupError(f"Invalid target {t.id}: {exc}") from exc

    return out


def load_targets(
    path: str | Path | None = None,
    base_url: str | None = None,
    timeout_s: float | None = None,
) -> list[CheckTarget]:
    """Resolve the configured targets: explicit file, default file, then base URL."""
    if path is not None:
        reg = load_registry(Path(path))
    elif REGISTRY_PATH.exists():
        reg = load_registry(REGISTRY_PATH)
    elif base_url:
        reg = builtin_registry(base_url)
    else:
        raise EnvironmentSetupError(
            "No targets configured: set SITECHECK_TARGETS_PATH or SITECHECK_BASE_URL, "
            f"or create {REGISTRY_PATH.name}"
        )
    return apply_defaults(reg, timeout_s=timeout_s)
