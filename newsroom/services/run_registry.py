"""In-process record of article runs that are scheduled or executing.

The persisted status alone cannot tell a live run from one that died with
its process. An article that shows ``started`` or a progress marker but has
no entry here was interrupted, and a new run may take it over.
"""

from __future__ import annotations


class ActiveRuns:
    """Article ids owned by a run in this process."""

    def __init__(self) -> None:
        self._article_ids: set[str] = set()

    def __contains__(self, article_id: object) -> bool:
        return article_id in self._article_ids

    def __len__(self) -> int:
        return len(self._article_ids)

    def claim(self, article_id: str) -> bool:
        """Take ownership of ``article_id``; False if another run holds it."""
        if article_id in self._article_ids:
            return False
        self._article_ids.add(article_id)
        return True

    def release(self, article_id: str) -> None:
        self._article_ids.discard(article_id)


active_runs = ActiveRuns()
