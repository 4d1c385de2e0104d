from __future__ import annotations

from typing import Any, Literal, Optional, List
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

BodySchema = Literal["none", "posts"]

class Defaults(BaseModel):
    timeout_s: float = Field(default=10.0, gt=0)
    expected_status: int = Field(default=200, ge=100, le=599)

class CheckTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    url: AnyHttpUrl
    expected_status: int = Field(default=200, ge=100, le=599)
    timeout_s: Optional[float] = Field(default=None, gt=0)
    connect_timeout_override: Optional[float] = Field(default=None, gt=0)
    body: BodySchema = "none"

class Registry(BaseModel):
    defaults: Defaults = Defaults()
    targets: List[CheckTarget]

class Post(BaseModel):
    """One element of a content API listing. Only id and title are checked."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str

    @field_validator("title", mode="before")
    @classmethod
    def _rendered_title(cls, value: Any) -> Any:
        # WordPress returns {"rendered": "..."} for titles.
        if isinstance(value, dict) and "rendered" in value:
            return value["rendered"]
        return value

PostList = TypeAdapter(List[Post])

BODY_SCHEMAS: dict[str, TypeAdapter] = {
    "posts": PostList,
}
