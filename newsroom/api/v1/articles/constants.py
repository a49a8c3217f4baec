"""Constants for article routes."""

DEFAULT_RUN_LIMIT = 20
MAX_RUN_LIMIT = 100
DEFAULT_RUN_LOG_LIMIT = 100
MAX_RUN_LOG_LIMIT = 500

ARTICLE_NOT_FOUND_DETAIL = "Article not found"
ARTICLE_ARCHIVED_DETAIL = "Article is archived"
ARTICLE_RUN_IN_PROGRESS_DETAIL = "A pipeline run is already in progress for this article"
ARTICLE_STORE_UNAVAILABLE_DETAIL = "Article store is unavailable, try again shortly"
RUN_LOG_UNAVAILABLE_DETAIL = "Run log is unavailable"
