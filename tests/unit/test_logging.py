"""Unit tests for the log formatter."""

from __future__ import annotations

import json
import logging

from newsroom.core.logging import MAX_EXTRA_TEXT_LENGTH, JSONExtrasFormatter


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("newsroom.test", logging.INFO, __file__, 1, "Step completed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_extras_are_appended_as_json() -> None:
    line = JSONExtrasFormatter().format(_record(article_id="article-1", step=3))

    prefix, _, payload = line.partition("Step completed ")
    assert "| INFO     | newsroom.test |" in prefix
    assert json.loads(payload) == {"article_id": "article-1", "step": 3}


def test_record_without_extras_has_no_payload() -> None:
    line = JSONExtrasFormatter().format(_record())

    assert line.endswith("Step completed")


def test_run_identifiers_lead_the_extras() -> None:
    line = JSONExtrasFormatter().format(_record(duration_s=1.5, step=2, run_id="run-1", article_id="article-1"))

    payload = json.loads(line.partition("Step completed ")[2])
    assert list(payload) == ["article_id", "run_id", "step", "duration_s"]


def test_missing_identifiers_are_not_printed() -> None:
    line = JSONExtrasFormatter().format(_record(article_id="article-1", run_id=None))

    assert json.loads(line.partition("Step completed ")[2]) == {"article_id": "article-1"}


def test_long_text_extras_are_clipped() -> None:
    line = JSONExtrasFormatter().format(_record(prompt="x" * (MAX_EXTRA_TEXT_LENGTH + 50)))

    payload = json.loads(line.partition("Step completed ")[2])
    assert payload["prompt"] == "x" * MAX_EXTRA_TEXT_LENGTH + f"... [{MAX_EXTRA_TEXT_LENGTH + 50} chars]"
