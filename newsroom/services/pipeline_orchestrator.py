"""Pipeline orchestrator: drives one article through its fixed step sequence."""

from __future__ import annotations

import logging
import time
import traceback
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from newsroom.config import settings
from newsroom.core.exceptions import (
    ArticleArchivedError,
    ArticleNotFoundError,
    ArticleStateError,
    FinalContentValidationError,
    PipelineAlreadyRunningError,
    PipelineError,
    StepDependencyError,
)
from newsroom.models.article import Article
from newsroom.repositories.article_repository import ArticleRepository, reset_run_outputs
from newsroom.repositories.run_repository import ArticleRunRepository
from newsroom.services import article_status
from newsroom.services.run_registry import ActiveRuns, active_runs
from newsroom.services.content_blocks import build_rich_content
from newsroom.services.pipelines.registry import get_pipeline
from newsroom.services.pipelines.steps import (
    ArticleInputs,
    PipelineDefinition,
    PipelineStep,
    RunState,
    StepResult,
)
from newsroom.services.run_logger import (
    RUN_COMPLETED,
    RUN_FAILED,
    RUN_STARTED,
    STEP_COMPLETED,
    STEP_FAILED,
    STEP_PROMPTS,
    STEP_REQUEST,
    STEP_RESPONSE,
    RunLogger,
)

logger = logging.getLogger(__name__)

ARTICLE_NOT_FOUND = "Article not found"


@dataclass(frozen=True)
class RunResult:
    """Outcome of one pipeline run."""

    success: bool
    error: str | None = None
    article_id: str | None = None
    run_id: str | None = None
    failed_step: int | None = None


class _StepFailure(Exception):
    """Internal signal carrying the step that stopped a run."""

    def __init__(self, step_number: int | None, message: str, error_traceback: str | None) -> None:
        self.step_number = step_number
        self.error_traceback = error_traceback
        super().__init__(message)


async def start_article_run(article_store: ArticleRepository, article: Article) -> None:
    """Move ``article`` to ``started`` with the previous run's outputs cleared.

    The caller must hold the article in the run registry, so a running status
    here belongs to an interrupted run. That run is closed as ``failed``
    before the new one starts.

    Raises:
        ArticleArchivedError: archived articles are never run.
        InvalidStatusTransitionError: the article cannot start a run (completed).
    """
    article_id = str(article.id)
    if article.status == article_status.ARCHIVED:
        raise ArticleArchivedError(article_id)
    if article_status.is_running(article.status):
        logger.warning(
            "Recovering interrupted run",
            extra={"article_id": article_id, "status": article.status},
        )
        await article_store.update_status(article_id, article_status.FAILED)
    await article_store.update_fields(article_id, reset_run_outputs(), status=article_status.STARTED)


class PipelineOrchestrator:
    """Runs the step sequence for an article and persists progress after each step.

    ``run_pipeline`` never raises: every failure becomes a failed RunResult
    and, once the article could be loaded, a persisted ``failed`` status.
    """

    def __init__(
        self,
        *,
        article_store: ArticleRepository | None = None,
        run_repository: ArticleRunRepository | None = None,
        pipeline_resolver: Callable[[str], PipelineDefinition] = get_pipeline,
        run_logger_factory: Callable[..., RunLogger] = RunLogger,
        run_registry: ActiveRuns | None = None,
    ) -> None:
        self.article_store = article_store or ArticleRepository()
        self.run_repository = run_repository or ArticleRunRepository()
        self.pipeline_resolver = pipeline_resolver
        self.run_logger_factory = run_logger_factory
        self.active_runs = run_registry if run_registry is not None else active_runs

    async def run_pipeline(self, article_id: str, *, claimed: bool = False) -> RunResult:
        """Execute the full pipeline for one article.

        ``claimed`` means the caller already holds the article in the run
        registry and has moved it to ``started`` (the trigger does both).
        The claim is released when the run ends.
        """
        if not claimed and not self.active_runs.claim(article_id):
            error = PipelineAlreadyRunningError(article_id)
            logger.warning("Pipeline already running", extra={"article_id": article_id})
            return RunResult(success=False, error=str(error), article_id=article_id)
        try:
            return await self._load_and_run(article_id, started_by_caller=claimed)
        finally:
            self.active_runs.release(article_id)

    async def _load_and_run(self, article_id: str, *, started_by_caller: bool) -> RunResult:
        try:
            article = await self.article_store.load_by_id(article_id)
        except ArticleNotFoundError:
            logger.warning("Pipeline requested for unknown article", extra={"article_id": article_id})
            return RunResult(success=False, error=ARTICLE_NOT_FOUND, article_id=article_id)
        except Exception as exc:
            logger.exception("Could not load article for pipeline", extra={"article_id": article_id})
            return RunResult(success=False, error=str(exc), article_id=article_id)

        run_logger = self.run_logger_factory(article_id, pipeline=article.source_type)
        try:
            return await self._run(article, run_logger, started_by_caller=started_by_caller)
        except Exception as exc:
            logger.exception("Unexpected pipeline error", extra={"article_id": article_id})
            await self._mark_article_failed(article_id)
            return RunResult(success=False, error=str(exc), article_id=article_id)
        finally:
            await run_logger.aclose()

    async def _run(self, article: Article, run_logger: RunLogger, *, started_by_caller: bool) -> RunResult:
        article_id = str(article.id)
        if not (started_by_caller and article.status == article_status.STARTED):
            try:
                await start_article_run(self.article_store, article)
            except ArticleStateError as exc:
                logger.warning(
                    "Article is not in a startable state",
                    extra={"article_id": article_id, "status": article.status},
                )
                return RunResult(success=False, error=str(exc), article_id=article_id)

        started_at = datetime.now(timezone.utc)
        t0 = time.perf_counter()
        inputs = ArticleInputs.from_article(article)
        state = RunState(inputs=inputs)
        run_id = await self._open_run_record(inputs, started_at)
        run_logger.run_id = run_id
        run_info = {"article_id": article_id, "run_id": run_id, "source_type": article.source_type}

        try:
            definition = self.pipeline_resolver(article.source_type)
            if not inputs.sources:
                raise PipelineError("Article has no source text")

            logger.info("Pipeline started", extra={**run_info, "total_steps": definition.total_steps})
            run_logger.record(
                RUN_STARTED,
                total_steps=definition.total_steps,
                slug=inputs.slug,
                version=inputs.version,
                source_count=len(inputs.sources),
                blob_count=inputs.blob_count,
                length=inputs.length,
            )

            for index, step in enumerate(definition.steps, start=1):
                result = await self._execute_step(step, state, run_logger, run_info)
                if not result.success:
                    raise _StepFailure(step.number, result.error or "step failed", result.error_traceback)
                if index < definition.total_steps:
                    marker = article_status.progress_marker(index, definition.total_steps)
                    await self._persist_step(article_id, step, state, result.data or {}, marker)

            problems = definition.validate_outputs(state)
            if problems:
                raise FinalContentValidationError(problems)

            await self._persist_final(article_id, definition, state)
        except _StepFailure as failure:
            return await self._fail(
                state,
                run_logger,
                run_id=run_id,
                step_number=failure.step_number,
                error=str(failure),
                error_traceback=failure.error_traceback,
            )
        except Exception as exc:
            return await self._fail(
                state,
                run_logger,
                run_id=run_id,
                step_number=None,
                error=str(exc),
                error_traceback=traceback.format_exc(),
            )

        elapsed = time.perf_counter() - t0
        await self._close_run_record(run_id, state, status="completed")
        run_logger.record(
            RUN_COMPLETED,
            duration_s=round(elapsed, 2),
            input_tokens=state.input_tokens,
            output_tokens=state.output_tokens,
        )
        logger.info(
            "Pipeline completed",
            extra={
                **run_info,
                "duration_s": round(elapsed, 2),
                "input_tokens": state.input_tokens,
                "output_tokens": state.output_tokens,
            },
        )
        return RunResult(success=True, article_id=article_id, run_id=run_id)

    async def _execute_step(
        self,
        step: PipelineStep,
        state: RunState,
        run_logger: RunLogger,
        run_info: dict[str, Any],
    ) -> StepResult[dict[str, Any]]:
        """Run one step; failures come back as an unsuccessful StepResult."""
        step_info = {**run_info, "step": step.number, "step_name": step.name}
        logger.info("Step started", extra=step_info)
        try:
            missing = state.missing(step.requires)
            if missing:
                raise StepDependencyError(step.number, missing)

            adapter = step.adapter()
            input_data = step.build_input(state)
            run_logger.record(
                STEP_PROMPTS,
                step=step.number,
                step_name=step.name,
                prompts=adapter.build_prompts(input_data).as_dict(),
            )
            run_logger.record(
                STEP_REQUEST,
                step=step.number,
                step_name=step.name,
                request=input_data.model_dump(),
            )

            adapter_result = await adapter.run(input_data)
            run_logger.record(
                STEP_RESPONSE,
                step=step.number,
                step_name=step.name,
                response=adapter_result.output.model_dump(),
                usage=asdict(adapter_result.usage),
            )

            outputs = step.collect(state, adapter_result.output)
            unproduced = [key for key in step.produces if key not in outputs]
            if unproduced:
                raise PipelineError(
                    f"Step {step.number} did not produce {', '.join(unproduced)}",
                    {"step": step.number, "missing": unproduced},
                )
            state.outputs.update(outputs)
            state.usage.append((step.number, adapter_result.usage))

            run_logger.record(
                STEP_COMPLETED,
                step=step.number,
                step_name=step.name,
                duration_s=round(adapter_result.duration_s, 2),
                outputs=sorted(outputs),
            )
            logger.info(
                "Step completed",
                extra={
                    **step_info,
                    "duration_s": round(adapter_result.duration_s, 2),
                    "input_tokens": adapter_result.usage.input_tokens,
                    "output_tokens": adapter_result.usage.output_tokens,
                },
            )
            return StepResult(success=True, data=outputs)
        except Exception as e:
            logger.warning("Step failed", extra={**step_info, "error": str(e)})
            run_logger.record(
                STEP_FAILED,
                step=step.number,
                step_name=step.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return StepResult(success=False, error=str(e), error_traceback=traceback.format_exc())

    async def _persist_step(
        self,
        article_id: str,
        step: PipelineStep,
        state: RunState,
        outputs: dict[str, Any],
        marker: str,
    ) -> None:
        """Write a step's article fields and its progress marker together."""
        fields = dict(step.article_fields(outputs)) if step.article_fields else {}
        fields["step_outputs"] = dict(state.outputs)
        await self.article_store.update_fields(article_id, fields, status=marker)

    async def _persist_final(
        self,
        article_id: str,
        definition: PipelineDefinition,
        state: RunState,
    ) -> None:
        body = str(state.get(definition.final_output)).strip()
        headline = str(state.get("headline")).strip()
        blobs = list(state.get("blobs") or [])
        fields = {
            "headline": headline,
            "blob": "\n".join(blobs),
            "content": body,
            "rich_content": build_rich_content(headline, blobs, body),
            "step_outputs": dict(state.outputs),
        }
        await self.article_store.update_fields(article_id, fields, status=article_status.COMPLETED)

    async def _fail(
        self,
        state: RunState,
        run_logger: RunLogger,
        *,
        run_id: str | None,
        step_number: int | None,
        error: str,
        error_traceback: str | None,
    ) -> RunResult:
        article_id = state.inputs.article_id
        logger.warning(
            "Pipeline failed",
            extra={"article_id": article_id, "run_id": run_id, "step": step_number, "error": error},
        )
        await self._mark_article_failed(article_id)
        await self._close_run_record(
            run_id,
            state,
            status="failed",
            failed_step=step_number,
            error_message=error,
            error_traceback=error_traceback,
        )
        run_logger.record(RUN_FAILED, step=step_number, error=error)
        return RunResult(
            success=False,
            error=error,
            article_id=article_id,
            run_id=run_id,
            failed_step=step_number,
        )

    async def _mark_article_failed(self, article_id: str) -> None:
        try:
            await self.article_store.update_status(article_id, article_status.FAILED)
        except Exception:
            logger.exception("Could not mark article as failed", extra={"article_id": article_id})

    async def _open_run_record(self, inputs: ArticleInputs, started_at: datetime) -> str | None:
        """Best-effort ledger row for this run."""
        try:
            return await self.run_repository.create(
                article_id=inputs.article_id,
                user_id=inputs.created_by,
                source_type=inputs.source_type,
                length=inputs.length,
                status="running",
                started_at=started_at,
            )
        except Exception:
            logger.warning(
                "Failed to record run start",
                extra={"article_id": inputs.article_id},
                exc_info=True,
            )
            return None

    async def _close_run_record(
        self,
        run_id: str | None,
        state: RunState,
        *,
        status: str,
        failed_step: int | None = None,
        error_message: str | None = None,
        error_traceback: str | None = None,
    ) -> None:
        if run_id is None:
            return
        cost = settings.estimate_cost_usd(state.input_tokens, state.output_tokens)
        updates: dict[str, Any] = {
            "status": status,
            "input_tokens_used": state.input_tokens,
            "output_tokens_used": state.output_tokens,
            "cost_usd": Decimal(str(cost)),
            "completed_at": datetime.now(timezone.utc),
        }
        if status == "failed":
            updates.update(
                failed_step=failed_step,
                error_message=error_message,
                error_traceback=error_traceback,
            )
        try:
            await self.run_repository.patch(run_id, updates)
        except Exception:
            logger.warning(
                "Failed to record run usage",
                extra={"article_id": state.inputs.article_id, "run_id": run_id},
                exc_info=True,
            )
