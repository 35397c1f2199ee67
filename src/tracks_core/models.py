from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

VersionSpec = Union[str, list[str], dict[str, Union[str, list[str]]]]


@dataclass(frozen=True)
class TrackKey:
    """Two-part address of a track: the owning product and the track id."""

    product: str
    track: str

    def __str__(self) -> str:
        return f"{self.product}/{self.track}"


class RenderContext(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # Left optional so the resolver owns the missing-product failure.
    current_product: str | None = Field(default=None, max_length=100)
    current_version: str = Field(min_length=1, max_length=100)
    current_language: str = Field(default="en", min_length=2, max_length=16)


class LiteralFeatured(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["literal"] = "literal"
    value: bool


class TemplatedFeatured(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["templated"] = "templated"
    template: str


FeaturedFlag = Annotated[
    Union[LiteralFeatured, TemplatedFeatured],
    Field(discriminator="kind"),
]


class TrackData(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str
    description: str = ""
    guides: list[str] = Field(default_factory=list)
    versions: VersionSpec | None = None
    featured_track: FeaturedFlag | None = None

    @field_validator("featured_track", mode="before")
    @classmethod
    def _coerce_featured_flag(cls, value: Any) -> Any:
        # Frontmatter carries either a bare boolean or a templated string.
        if isinstance(value, bool):
            return {"kind": "literal", "value": value}
        if isinstance(value, str):
            if not value.strip():
                return None
            return {"kind": "templated", "template": value}
        return value

    @field_validator("guides", mode="before")
    @classmethod
    def _coerce_guides(cls, value: Any) -> Any:
        if value is None:
            return []
        return value


class LinkDatum(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    href: str
    page: str
    title: str
    intro: str = ""


class ResolvedLearningTrack(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    track_name: str
    track_product: str | None = None
    title: str
    description: str
    guides: list[LinkDatum] = Field(default_factory=list)


class LearningTracksResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    featured_track: ResolvedLearningTrack | None = None
    learning_tracks: list[ResolvedLearningTrack] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error_code: str
    message: str
    request_id: str | None = None


class MetricsResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    http_status_counts: dict[str, int]
    resolution_counts: dict[str, int]
    error_counts: dict[str, int]
