"""Article models: versioned generation targets."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsroom.models.base import Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from newsroom.models.run import ArticleRun

SOURCE_TYPES = ("single", "multi")
ARTICLE_LENGTHS = ("100-250", "400-550", "700-850", "1000-1200")
MIN_BLOBS = 1
MAX_BLOBS = 6


class Article(Base, IdMixin, TimestampMixin):
    """One version of an article in an (org_id, slug) series."""

    __tablename__ = "articles"
    __table_args__ = (
        UniqueConstraint("org_id", "slug", "version", name="uq_articles_org_slug_version"),
        Index("ix_articles_org_slug", "org_id", "slug"),
    )

    # Identity (immutable after creation)
    org_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(50), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    source_type: Mapped[str] = mapped_column(String(10), nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="created", index=True)

    # Inputs
    input_sources: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    input_headline: Mapped[str | None] = mapped_column(String(500), nullable=True)
    preset_title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    preset_instructions: Mapped[str] = mapped_column(Text, nullable=False, default="")
    preset_blobs: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    preset_length: Mapped[str] = mapped_column(String(20), nullable=False, default="400-550")

    # Outputs populated by the pipeline
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    headline: Mapped[str | None] = mapped_column(String(500), nullable=True)
    blob: Mapped[str | None] = mapped_column(Text, nullable=True)
    outline: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    rich_content: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    step_outputs: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    runs: Mapped[list[ArticleRun]] = relationship(
        "ArticleRun",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="ArticleRun.created_at",
    )

    @property
    def blobs(self) -> list[str]:
        """Blob lines stored newline-joined in ``blob``."""
        if not self.blob:
            return []
        return [line for line in self.blob.split("\n") if line.strip()]
