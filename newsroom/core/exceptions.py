"""Custom exception classes for the application."""

from typing import Any


class NewsroomError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Article Errors
class ArticleNotFoundError(NewsroomError):
    """Article not found."""

    def __init__(self, article_id: str) -> None:
        super().__init__(f"Article not found: {article_id}", {"article_id": article_id})


class ArticleStateError(NewsroomError):
    """Article is in a state that does not allow the requested operation."""

    pass


class InvalidStatusTransitionError(ArticleStateError):
    """Status change would move an article backwards."""

    def __init__(self, article_id: str, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move article {article_id} from '{current}' to '{requested}'",
            {"article_id": article_id, "current": current, "requested": requested},
        )


class ArticleArchivedError(ArticleStateError):
    """Archived articles cannot be run."""

    def __init__(self, article_id: str) -> None:
        super().__init__(f"Article is archived: {article_id}", {"article_id": article_id})


class PipelineAlreadyRunningError(ArticleStateError):
    """A run for this article is already scheduled or executing in this process."""

    def __init__(self, article_id: str) -> None:
        super().__init__(f"Pipeline already running for article: {article_id}", {"article_id": article_id})


class VersionConflictError(ArticleStateError):
    """Another writer created the same (org_id, slug, version) first."""

    def __init__(self, org_id: str, slug: str, version: int) -> None:
        super().__init__(
            f"Version {version} of {org_id}/{slug} already exists",
            {"org_id": org_id, "slug": slug, "version": version},
        )


class ArticleValidationError(NewsroomError):
    """Article create or version payload is invalid."""

    pass


# Adapter Errors
class AdapterError(NewsroomError):
    """A step adapter call failed or returned an unusable result."""

    def __init__(self, adapter: str, message: str) -> None:
        self.adapter = adapter
        super().__init__(f"{adapter}: {message}", {"adapter": adapter})


class AdapterTimeoutError(AdapterError):
    """Provider did not answer within the tier timeout."""

    def __init__(self, adapter: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(adapter, f"timed out after {timeout_seconds:g}s")


class EmptyAdapterOutputError(AdapterError):
    """Model output is missing required content."""

    def __init__(self, adapter: str, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(adapter, f"empty output for {', '.join(fields)}")


# Persistence Errors
class PersistenceError(NewsroomError):
    """Article store write failed or could not be confirmed."""

    pass


# Pipeline Errors
class PipelineError(NewsroomError):
    """Base class for pipeline errors."""

    pass


class StepDependencyError(PipelineError):
    """Step inputs from upstream steps are missing."""

    def __init__(self, step_number: int, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Step {step_number} is missing upstream outputs: {', '.join(missing)}",
            {"step": step_number, "missing": missing},
        )


class UnknownSourceTypeError(PipelineError):
    """No pipeline is registered for the article source type."""

    def __init__(self, source_type: str) -> None:
        super().__init__(f"Unknown source type: {source_type}")


class FinalContentValidationError(PipelineError):
    """Finished run did not produce publishable content."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__(f"Final content validation failed: {'; '.join(problems)}")
