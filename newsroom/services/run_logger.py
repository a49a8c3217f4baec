"""Best-effort audit trail of prompts and responses for a pipeline run."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis

from newsroom.config import settings
from newsroom.core.redis import get_redis_client

logger = logging.getLogger(__name__)
# Mirror of every run event, independent of the Redis sink
event_logger = logging.getLogger("newsroom.runlog")

RUN_LOG_KEY_PREFIX = "runlog"

RUN_STARTED = "run_started"
STEP_PROMPTS = "step_prompts"
STEP_REQUEST = "step_request"
STEP_RESPONSE = "step_response"
STEP_COMPLETED = "step_completed"
STEP_FAILED = "step_failed"
RUN_COMPLETED = "run_completed"
RUN_FAILED = "run_failed"

EVENT_KINDS = frozenset(
    {
        RUN_STARTED,
        STEP_PROMPTS,
        STEP_REQUEST,
        STEP_RESPONSE,
        STEP_COMPLETED,
        STEP_FAILED,
        RUN_COMPLETED,
        RUN_FAILED,
    }
)


def run_log_key(article_id: str) -> str:
    return f"{RUN_LOG_KEY_PREFIX}:{article_id}"


class RunLogger:
    """Record run events without ever failing the caller.

    ``record`` is synchronous: the Redis write is scheduled as a background
    task and ``aclose`` waits for whatever is still pending. The first sink
    failure is reported once per run; later ones are dropped.
    """

    def __init__(
        self,
        article_id: str,
        *,
        run_id: str | None = None,
        pipeline: str = "",
        redis_client: Redis | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.article_id = article_id
        self.run_id = run_id
        self.pipeline = pipeline
        self.enabled = settings.run_log_enabled if enabled is None else enabled
        self._redis = redis_client
        self._pending: set[asyncio.Task[None]] = set()
        self._sink_failed = False
        self._closed = False

    @property
    def key(self) -> str:
        return run_log_key(self.article_id)

    def record(self, event: str, **payload: Any) -> None:
        """Record one event; never raises."""
        try:
            entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "event": event,
                "article_id": self.article_id,
                "run_id": self.run_id,
                "pipeline": self.pipeline,
                **payload,
            }
            event_logger.info(
                event,
                extra={
                    "article_id": self.article_id,
                    "run_id": self.run_id,
                    "step": payload.get("step"),
                    "step_name": payload.get("step_name"),
                },
            )
            if not self.enabled or self._closed:
                return
            line = json.dumps(entry, default=str, ensure_ascii=False)
            task = asyncio.get_running_loop().create_task(self._write(line))
        except Exception as exc:
            self._report_sink_failure(exc)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, line: str) -> None:
        try:
            redis = self._redis or get_redis_client()
            await redis.rpush(self.key, line)
            await redis.ltrim(self.key, -settings.run_log_max_entries, -1)
            await redis.expire(self.key, settings.run_log_ttl_seconds)
        except Exception as exc:
            self._report_sink_failure(exc)

    def _report_sink_failure(self, exc: Exception) -> None:
        if self._sink_failed:
            return
        self._sink_failed = True
        logger.warning(
            "Run log sink failed; further run log errors are dropped",
            extra={"article_id": self.article_id, "run_id": self.run_id, "error": repr(exc)},
        )

    async def aclose(self) -> None:
        """Wait for pending writes; never raises."""
        self._closed = True
        if not self._pending:
            return
        results = await asyncio.gather(*self._pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                self._report_sink_failure(result)


async def read_run_log(
    article_id: str,
    *,
    limit: int = 100,
    redis_client: Redis | None = None,
) -> list[dict[str, Any]]:
    """Return the newest ``limit`` run log entries for an article, oldest first."""
    redis = redis_client or get_redis_client()
    raw_entries = await redis.lrange(run_log_key(article_id), -limit, -1)
    entries: list[dict[str, Any]] = []
    for raw in raw_entries:
        try:
            entries.append(json.loads(raw))
        except json.JSONDecodeError:
            logger.warning("Invalid run log entry in Redis", extra={"article_id": article_id})
    return entries
