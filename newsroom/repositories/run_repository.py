"""Repository for the per-run usage ledger."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select

from newsroom.core.database import get_session_context
from newsroom.core.db_retry import run_with_transient_db_retry
from newsroom.models.run import ArticleRun

logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = frozenset(
    {
        "status",
        "failed_step",
        "error_message",
        "error_traceback",
        "input_tokens_used",
        "output_tokens_used",
        "cost_usd",
        "completed_at",
    }
)


class ArticleRunRepository:
    """Handles ArticleRun writes via short-lived sessions."""

    async def create(self, **fields: Any) -> str:
        """Insert a ledger row and return its id."""

        async def _create() -> str:
            async with get_session_context() as session:
                run = ArticleRun(**fields)
                session.add(run)
                await session.flush()
                return str(run.id)

        return await run_with_transient_db_retry(
            _create,
            operation_name="article_run_create",
            log_context={"article_id": fields.get("article_id")},
        )

    async def patch(self, run_id: str, updates: Mapping[str, Any]) -> None:
        """Patch a ledger row with transient connection retries."""
        if not updates:
            return
        unknown = sorted(set(updates) - _PATCHABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not patchable on ArticleRun: {unknown}")

        async def _patch_once() -> None:
            async with get_session_context() as session:
                run = await session.get(ArticleRun, run_id)
                if run is None:
                    raise ValueError(f"Article run not found: {run_id}")
                for name, value in updates.items():
                    setattr(run, name, value)

        await run_with_transient_db_retry(
            _patch_once,
            operation_name="article_run_patch",
            log_context={"run_id": run_id},
        )

    async def list_for_article(self, article_id: str, *, limit: int = 20) -> list[ArticleRun]:
        """Newest runs first."""

        async def _list() -> list[ArticleRun]:
            async with get_session_context(commit_on_exit=False) as session:
                result = await session.execute(
                    select(ArticleRun)
                    .where(ArticleRun.article_id == article_id)
                    .order_by(ArticleRun.created_at.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())

        return await run_with_transient_db_retry(
            _list,
            operation_name="article_run_list",
            log_context={"article_id": article_id},
        )
