"""Article API endpoints."""

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from redis.exceptions import RedisError

from newsroom.api.v1.articles.constants import (
    ARTICLE_STORE_UNAVAILABLE_DETAIL,
    DEFAULT_RUN_LIMIT,
    DEFAULT_RUN_LOG_LIMIT,
    MAX_RUN_LIMIT,
    MAX_RUN_LOG_LIMIT,
    RUN_LOG_UNAVAILABLE_DETAIL,
)
from newsroom.core.exceptions import (
    ArticleNotFoundError,
    ArticleStateError,
    ArticleValidationError,
    NewsroomError,
    PersistenceError,
)
from newsroom.dependencies import ArticleStore, Orchestrator, RedisClient, RunStore
from newsroom.models.article import Article
from newsroom.schemas.article import (
    ArticleCreate,
    ArticleResponse,
    ArticleRunResponse,
    ArticleStatusResponse,
    ArticleVersionCreate,
    RunLogEntry,
    TriggerResponse,
)
from newsroom.services import article_status
from newsroom.services.run_logger import read_run_log
from newsroom.services.trigger import trigger_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(exc: NewsroomError) -> HTTPException:
    """Translate a domain error into the matching HTTP response."""
    if isinstance(exc, ArticleNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ArticleStateError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ArticleValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, PersistenceError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ARTICLE_STORE_UNAVAILABLE_DETAIL,
        )
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=exc.message)


@router.post(
    "",
    response_model=ArticleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create article",
    description="Create the next version of an (org, slug) article series.",
)
async def create_article(payload: ArticleCreate, store: ArticleStore) -> Article:
    """Create an article from its source inputs."""
    try:
        article = await store.create_article(payload)
    except NewsroomError as exc:
        raise _http_error(exc) from exc

    logger.info(
        "Article created",
        extra={"article_id": article.id, "org_id": article.org_id, "slug": article.slug, "version": article.version},
    )
    return article


@router.get(
    "/versions",
    response_model=list[ArticleResponse],
    summary="List article versions",
    description="Return every version of an (org, slug) series, newest first.",
)
async def list_article_versions(
    store: ArticleStore,
    org_id: str = Query(..., min_length=1),
    slug: str = Query(..., min_length=1),
) -> list[Article]:
    try:
        return await store.list_versions(org_id, slug)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.get("/{article_id}", response_model=ArticleResponse, summary="Get article")
async def get_article(article_id: str, store: ArticleStore) -> Article:
    try:
        return await store.load_by_id(article_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.get(
    "/{article_id}/status",
    response_model=ArticleStatusResponse,
    summary="Poll article status",
    description="Return the article status, including in-flight progress markers such as '43%'.",
)
async def get_article_status(article_id: str, store: ArticleStore) -> ArticleStatusResponse:
    try:
        article = await store.load_by_id(article_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc

    return ArticleStatusResponse(
        article_id=article_id,
        status=article.status,
        progress_percent=article_status.percent_of(article.status),
        is_terminal=article_status.is_terminal(article.status),
        is_running=article_status.is_running(article.status),
    )


@router.post(
    "/{article_id}/run",
    response_model=TriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start article pipeline",
    description=(
        "Mark the article started and run its pipeline in the background. "
        "Poll the status endpoint for progress."
    ),
)
async def run_article_pipeline(
    article_id: str,
    background_tasks: BackgroundTasks,
    store: ArticleStore,
    orchestrator: Orchestrator,
) -> TriggerResponse:
    try:
        return await trigger_pipeline(
            article_id,
            background_tasks,
            article_store=store,
            orchestrator=orchestrator,
        )
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.post(
    "/{article_id}/versions",
    response_model=ArticleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create article version",
    description="Derive the next version from this article; omitted inputs are copied forward.",
)
async def create_article_version(
    article_id: str,
    payload: ArticleVersionCreate,
    store: ArticleStore,
) -> Article:
    try:
        return await store.create_version(article_id, payload.to_overrides(), user_id=payload.user_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.post("/{article_id}/archive", response_model=ArticleResponse, summary="Archive article")
async def archive_article(article_id: str, store: ArticleStore) -> Article:
    """Archive a completed article."""
    try:
        return await store.archive(article_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.post("/{article_id}/unarchive", response_model=ArticleResponse, summary="Unarchive article")
async def unarchive_article(article_id: str, store: ArticleStore) -> Article:
    """Return an archived article to completed."""
    try:
        return await store.unarchive(article_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc


@router.get(
    "/{article_id}/runs",
    response_model=list[ArticleRunResponse],
    summary="List article runs",
    description="Usage ledger for the article's pipeline runs, newest first.",
)
async def list_article_runs(
    article_id: str,
    store: ArticleStore,
    runs: RunStore,
    limit: int = Query(DEFAULT_RUN_LIMIT, ge=1, le=MAX_RUN_LIMIT),
) -> list[ArticleRunResponse]:
    try:
        await store.load_by_id(article_id)
        rows = await runs.list_for_article(article_id, limit=limit)
    except NewsroomError as exc:
        raise _http_error(exc) from exc
    return [ArticleRunResponse.model_validate(row) for row in rows]


@router.get(
    "/{article_id}/run-log",
    response_model=list[RunLogEntry],
    summary="Read run log",
    description="Prompts, requests and responses recorded for the article's recent runs.",
)
async def get_article_run_log(
    article_id: str,
    store: ArticleStore,
    redis: RedisClient,
    limit: int = Query(DEFAULT_RUN_LOG_LIMIT, ge=1, le=MAX_RUN_LOG_LIMIT),
) -> list[RunLogEntry]:
    try:
        await store.load_by_id(article_id)
    except NewsroomError as exc:
        raise _http_error(exc) from exc

    try:
        entries = await read_run_log(article_id, limit=limit, redis_client=redis)
    except RedisError as exc:
        logger.warning("Run log read failed", extra={"article_id": article_id, "error": repr(exc)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=RUN_LOG_UNAVAILABLE_DETAIL,
        ) from exc
    return [RunLogEntry.model_validate(entry) for entry in entries]
