"""Start a pipeline run for an article without waiting for it."""

from __future__ import annotations

import logging

from fastapi import BackgroundTasks

from newsroom.core.exceptions import PipelineAlreadyRunningError
from newsroom.repositories.article_repository import ArticleRepository
from newsroom.schemas.article import TriggerResponse
from newsroom.services import article_status
from newsroom.services.pipeline_orchestrator import PipelineOrchestrator, start_article_run

logger = logging.getLogger(__name__)


async def trigger_pipeline(
    article_id: str,
    background_tasks: BackgroundTasks,
    *,
    article_store: ArticleRepository | None = None,
    orchestrator: PipelineOrchestrator | None = None,
) -> TriggerResponse:
    """Mark the article ``started`` and schedule its run in the background.

    The caller gets an answer as soon as the status is persisted; the run
    itself reports progress through the article status. The article stays
    claimed in the orchestrator's run registry until the scheduled run ends.

    Raises:
        ArticleNotFoundError: no article with this id.
        PipelineAlreadyRunningError: a run is already scheduled or executing.
        ArticleArchivedError: archived articles are never run.
        InvalidStatusTransitionError: completed versions are not rerun.
    """
    store = article_store or ArticleRepository()
    runner = orchestrator or PipelineOrchestrator(article_store=store)
    if not runner.active_runs.claim(article_id):
        raise PipelineAlreadyRunningError(article_id)

    try:
        article = await store.load_by_id(article_id)
        previous_status = article.status
        await start_article_run(store, article)
        background_tasks.add_task(runner.run_pipeline, article_id, claimed=True)
    except Exception:
        runner.active_runs.release(article_id)
        raise

    logger.info(
        "Pipeline run scheduled",
        extra={"article_id": article_id, "source_type": article.source_type, "previous_status": previous_status},
    )
    return TriggerResponse(article_id=article_id, status=article_status.STARTED)
