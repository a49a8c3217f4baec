"""Article store: versioned article rows and their status."""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from newsroom.config import settings
from newsroom.core.database import get_session_context
from newsroom.core.db_retry import run_with_transient_db_retry
from newsroom.core.exceptions import (
    ArticleNotFoundError,
    ArticleValidationError,
    InvalidStatusTransitionError,
    PersistenceError,
    VersionConflictError,
)
from newsroom.models.article import Article
from newsroom.schemas.article import ArticleCreate
from newsroom.services import article_status

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")

SLUG_MAX_LENGTH = 50
_SLUG_STRIP = re.compile(r"[^a-z0-9]")

# Columns the pipeline may write through update_fields
WRITABLE_FIELDS = frozenset(
    {
        "summary",
        "headline",
        "blob",
        "outline",
        "content",
        "rich_content",
        "step_outputs",
        "updated_by",
    }
)
# Columns a new version may change relative to its parent
VERSION_OVERRIDABLE_FIELDS = frozenset(
    {
        "input_sources",
        "input_headline",
        "preset_title",
        "preset_instructions",
        "preset_blobs",
        "preset_length",
    }
)
IMMUTABLE_FIELDS = frozenset({"id", "org_id", "slug", "source_type", "version", "created_by"})
# Columns a run produces; all cleared in the write that starts a run
RUN_OUTPUT_FIELDS = ("summary", "headline", "blob", "outline", "content", "rich_content")


def reset_run_outputs() -> dict[str, Any]:
    fields: dict[str, Any] = dict.fromkeys(RUN_OUTPUT_FIELDS)
    fields["step_outputs"] = {}
    return fields


def clean_slug(value: str | None) -> str:
    """Lowercase, keep only ``[a-z0-9]`` and cap at 50 characters."""
    if not value:
        return ""
    return _SLUG_STRIP.sub("", value.strip().lower())[:SLUG_MAX_LENGTH]


def validate_sources(source_type: str, sources: list[dict[str, Any]]) -> None:
    """Raise ArticleValidationError unless the source list fits the source type."""
    if not sources:
        raise ArticleValidationError("An article needs at least one source")
    if len(sources) > settings.max_sources_per_article:
        raise ArticleValidationError(
            f"An article accepts at most {settings.max_sources_per_article} sources",
            {"count": len(sources)},
        )
    if source_type == "single" and len(sources) != 1:
        raise ArticleValidationError(
            "A single-source article takes exactly one source",
            {"count": len(sources)},
        )
    if any(not str(source.get("text") or "").strip() for source in sources):
        raise ArticleValidationError("Every source needs non-empty text")


def build_version_fields(
    parent: Article,
    overrides: Mapping[str, Any],
    *,
    user_id: str,
) -> dict[str, Any]:
    """Column values for the version that follows ``parent`` (version excluded).

    Identity columns are always copied from the parent; outputs start empty.
    """
    blocked = sorted(set(overrides) & IMMUTABLE_FIELDS)
    if blocked:
        raise ArticleValidationError(
            f"Cannot change {', '.join(blocked)} on a new version",
            {"fields": blocked},
        )
    unknown = sorted(set(overrides) - VERSION_OVERRIDABLE_FIELDS)
    if unknown:
        raise ArticleValidationError(
            f"Unknown version fields: {', '.join(unknown)}",
            {"fields": unknown},
        )

    fields: dict[str, Any] = {
        "org_id": parent.org_id,
        "slug": parent.slug,
        "source_type": parent.source_type,
        "created_by": user_id,
        "updated_by": user_id,
        "status": article_status.CREATED,
        "input_sources": [dict(source) for source in parent.input_sources or []],
        "input_headline": parent.input_headline,
        "preset_title": parent.preset_title,
        "preset_instructions": parent.preset_instructions,
        "preset_blobs": parent.preset_blobs,
        "preset_length": parent.preset_length,
        "step_outputs": {},
    }
    fields.update(overrides)
    validate_sources(fields["source_type"], fields["input_sources"])
    return fields


class ArticleRepository:
    """Handles article reads and writes via short-lived sessions."""

    async def _run(
        self,
        operation: Callable[[], Awaitable[_ResultT]],
        *,
        operation_name: str,
        log_context: Mapping[str, Any] | None = None,
    ) -> _ResultT:
        try:
            return await run_with_transient_db_retry(
                operation,
                operation_name=operation_name,
                log_context=log_context,
            )
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.warning(
                "Article store operation failed",
                extra={**dict(log_context or {}), "operation": operation_name, "error": repr(exc)},
            )
            raise PersistenceError(
                f"Article store operation failed: {operation_name}",
                {"operation": operation_name},
            ) from exc

    async def load_by_id(self, article_id: str) -> Article:
        """Return the article or raise ArticleNotFoundError."""

        async def _load() -> Article:
            async with get_session_context(commit_on_exit=False) as session:
                article = await session.get(Article, article_id)
                if article is None:
                    raise ArticleNotFoundError(article_id)
                return article

        return await self._run(_load, operation_name="article_load", log_context={"article_id": article_id})

    async def update_fields(
        self,
        article_id: str,
        fields: Mapping[str, Any],
        *,
        status: str | None = None,
    ) -> Article:
        """Apply a partial update and optional status change in one transaction."""
        unknown = sorted(set(fields) - WRITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not writable through update_fields: {unknown}")

        async def _update() -> Article:
            async with get_session_context() as session:
                result = await session.execute(
                    select(Article).where(Article.id == article_id).with_for_update()
                )
                article = result.scalar_one_or_none()
                if article is None:
                    raise ArticleNotFoundError(article_id)
                if status is not None:
                    self._check_transition(article, status)
                    article.status = status
                for name, value in fields.items():
                    setattr(article, name, value)
                await session.flush()
                await session.refresh(article)
                return article

        return await self._run(
            _update,
            operation_name="article_update_fields",
            log_context={"article_id": article_id, "status": status, "fields": sorted(fields)},
        )

    async def update_status(self, article_id: str, status: str) -> None:
        """Move an article to ``status``; refuses regressions."""
        await self.update_fields(article_id, {}, status=status)
        logger.info("Article status updated", extra={"article_id": article_id, "status": status})

    async def create_article(self, payload: ArticleCreate) -> Article:
        """Create the next version of ``(org_id, slug)`` from a create payload."""
        slug = clean_slug(payload.slug)
        if not slug:
            raise ArticleValidationError("Slug is empty after cleaning", {"slug": payload.slug})
        sources = [source.model_dump() for source in payload.sources]
        validate_sources(payload.source_type, sources)

        fields = {
            "org_id": payload.org_id,
            "slug": slug,
            "source_type": payload.source_type,
            "created_by": payload.user_id,
            "updated_by": payload.user_id,
            "status": article_status.CREATED,
            "input_sources": sources,
            "input_headline": payload.headline,
            "preset_title": payload.preset_title,
            "preset_instructions": payload.instructions,
            "preset_blobs": payload.blobs,
            "preset_length": payload.length,
            "step_outputs": {},
        }
        return await self._insert_next_version(fields)

    async def create_version(
        self,
        parent_id: str,
        overrides: Mapping[str, Any],
        *,
        user_id: str,
    ) -> Article:
        """Create version N+1 of the parent's series, copying inputs forward."""
        parent = await self.load_by_id(parent_id)
        fields = build_version_fields(parent, overrides, user_id=user_id)
        article = await self._insert_next_version(fields)
        logger.info(
            "Article version created",
            extra={"parent_id": parent_id, "article_id": article.id, "version": article.version},
        )
        return article

    async def _insert_next_version(self, fields: dict[str, Any]) -> Article:
        org_id = fields["org_id"]
        slug = fields["slug"]
        attempted_version = 0

        async def _insert() -> Article:
            nonlocal attempted_version
            async with get_session_context() as session:
                result = await session.execute(
                    select(Article.version)
                    .where(Article.org_id == org_id, Article.slug == slug)
                    .order_by(Article.version.desc())
                    .limit(1)
                    .with_for_update()
                )
                attempted_version = (result.scalar_one_or_none() or 0) + 1
                article = Article(**fields, version=attempted_version)
                session.add(article)
                await session.flush()
                await session.refresh(article)
                return article

        try:
            return await self._run(
                _insert,
                operation_name="article_insert_version",
                log_context={"org_id": org_id, "slug": slug},
            )
        except IntegrityError as exc:
            raise VersionConflictError(org_id, slug, attempted_version) from exc

    async def list_versions(self, org_id: str, slug: str) -> list[Article]:
        """All versions of a series, newest first."""

        async def _list() -> list[Article]:
            async with get_session_context(commit_on_exit=False) as session:
                result = await session.execute(
                    select(Article)
                    .where(Article.org_id == org_id, Article.slug == clean_slug(slug))
                    .order_by(Article.version.desc())
                )
                return list(result.scalars().all())

        return await self._run(_list, operation_name="article_list_versions")

    async def archive(self, article_id: str) -> Article:
        return await self.update_fields(article_id, {}, status=article_status.ARCHIVED)

    async def unarchive(self, article_id: str) -> Article:
        return await self.update_fields(article_id, {}, status=article_status.COMPLETED)

    @staticmethod
    def _check_transition(article: Article, status: str) -> None:
        if not article_status.can_transition(article.status, status):
            raise InvalidStatusTransitionError(str(article.id), article.status, status)
