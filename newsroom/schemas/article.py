"""Article schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

SourceType = Literal["single", "multi"]
ArticleLength = Literal["100-250", "400-550", "700-850", "1000-1200"]


class SourceInput(BaseModel):
    """One source text supplied for an article."""

    text: str = Field(min_length=1)
    description: str = ""
    accredit: str = ""
    url: str = ""
    verbatim: bool = False
    primary: bool = False
    base: bool = False


class ArticleCreate(BaseModel):
    """Schema for creating an article (next version of its org/slug series)."""

    org_id: str = Field(min_length=1, max_length=64)
    user_id: str = Field(min_length=1, max_length=64)
    slug: str = Field(min_length=1, max_length=255)
    source_type: SourceType
    sources: list[SourceInput] = Field(min_length=1)
    headline: str | None = Field(default=None, max_length=500)
    preset_title: str = ""
    instructions: str = ""
    blobs: int = Field(default=1, ge=1, le=6)
    length: ArticleLength = "400-550"


class ArticleVersionCreate(BaseModel):
    """Schema for deriving a new version from an existing article.

    Omitted fields are copied forward from the parent version.
    """

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(min_length=1, max_length=64)
    sources: list[SourceInput] | None = None
    headline: str | None = Field(default=None, max_length=500)
    preset_title: str | None = None
    instructions: str | None = None
    blobs: int | None = Field(default=None, ge=1, le=6)
    length: ArticleLength | None = None

    def to_overrides(self) -> dict[str, Any]:
        """Map provided fields onto article column names."""
        mapping = {
            "headline": "input_headline",
            "preset_title": "preset_title",
            "instructions": "preset_instructions",
            "blobs": "preset_blobs",
            "length": "preset_length",
        }
        overrides: dict[str, Any] = {
            column: getattr(self, field_name)
            for field_name, column in mapping.items()
            if field_name in self.model_fields_set and getattr(self, field_name) is not None
        }
        if self.sources is not None:
            overrides["input_sources"] = [source.model_dump() for source in self.sources]
        return overrides


class ArticleResponse(BaseModel):
    """Schema for article response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    slug: str
    version: int
    source_type: str
    status: str
    created_by: str
    updated_by: str | None = None
    input_sources: list[dict[str, Any]] = Field(default_factory=list)
    input_headline: str | None = None
    preset_title: str = ""
    preset_instructions: str = ""
    preset_blobs: int = 1
    preset_length: str = "400-550"
    summary: str | None = None
    headline: str | None = None
    blob: str | None = None
    outline: str | None = None
    content: str | None = None
    rich_content: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ArticleStatusResponse(BaseModel):
    """Polling view of an article's progress."""

    article_id: str
    status: str
    progress_percent: int | None = None
    is_terminal: bool = False
    is_running: bool = False


class TriggerResponse(BaseModel):
    """Response returned once a run has been scheduled."""

    article_id: str
    status: str


class ArticleRunResponse(BaseModel):
    """Usage ledger row for one run."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    article_id: str
    user_id: str
    source_type: str
    length: str
    status: str
    failed_step: int | None = None
    error_message: str | None = None
    input_tokens_used: int = 0
    output_tokens_used: int = 0
    cost_usd: Decimal = Decimal("0")
    started_at: datetime | None = None
    completed_at: datetime | None = None


class RunLogEntry(BaseModel):
    """One run log event."""

    model_config = ConfigDict(extra="allow")

    timestamp: str
    event: str
    article_id: str
    run_id: str | None = None
    pipeline: str = ""
