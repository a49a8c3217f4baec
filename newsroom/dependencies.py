"""FastAPI dependency providers."""

from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from newsroom.core.redis import get_redis_client
from newsroom.repositories.article_repository import ArticleRepository
from newsroom.repositories.run_repository import ArticleRunRepository
from newsroom.services.pipeline_orchestrator import PipelineOrchestrator


def get_article_repository() -> ArticleRepository:
    return ArticleRepository()


def get_run_repository() -> ArticleRunRepository:
    return ArticleRunRepository()


def get_orchestrator(
    article_store: Annotated[ArticleRepository, Depends(get_article_repository)],
    run_repository: Annotated[ArticleRunRepository, Depends(get_run_repository)],
) -> PipelineOrchestrator:
    """Orchestrator sharing the request's repositories."""
    return PipelineOrchestrator(article_store=article_store, run_repository=run_repository)


def get_redis() -> Redis:
    return get_redis_client()


# Type aliases for dependency injection
ArticleStore = Annotated[ArticleRepository, Depends(get_article_repository)]
RunStore = Annotated[ArticleRunRepository, Depends(get_run_repository)]
Orchestrator = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]
RedisClient = Annotated[Redis, Depends(get_redis)]
