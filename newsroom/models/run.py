"""Run usage ledger model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsroom.models.base import Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from newsroom.models.article import Article


class ArticleRun(Base, IdMixin, TimestampMixin):
    """Accounting row for one pipeline run against one article."""

    __tablename__ = "article_runs"

    article_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    source_type: Mapped[str] = mapped_column(String(10), nullable=False)
    length: Mapped[str] = mapped_column(String(20), nullable=False)

    # running / completed / failed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="running")
    failed_step: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_traceback: Mapped[str | None] = mapped_column(Text, nullable=True)

    input_tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    output_tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_usd: Mapped[Decimal] = mapped_column(Numeric(12, 6), nullable=False, default=Decimal("0"))

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    article: Mapped[Article] = relationship("Article", back_populates="runs")
