"""Unit tests for pipeline definitions and per-run state."""

from __future__ import annotations

from dataclasses import replace
from types import SimpleNamespace
from typing import Any

import pytest

from newsroom.agents.headline_blobs import HeadlineBlobsOutput
from newsroom.core.exceptions import UnknownSourceTypeError
from newsroom.services.pipelines.aggregate import AGGREGATE_PIPELINE, MIN_AGGREGATE_BODY_LENGTH
from newsroom.services.pipelines.digest import DIGEST_PIPELINE
from newsroom.services.pipelines.registry import PIPELINES, get_pipeline
from newsroom.services.pipelines.shared import collect_headline_and_blobs, headline_fields
from newsroom.services.pipelines.steps import ArticleInputs, RunState, check_definition


def _article(**overrides: Any) -> SimpleNamespace:
    fields: dict[str, Any] = {
        "id": "article-1",
        "org_id": "org-1",
        "slug": "budget",
        "version": 3,
        "source_type": "multi",
        "created_by": "user-1",
        "input_sources": [
            {"text": "First source.", "accredit": "Gazette", "primary": True},
            {"text": "", "accredit": "Empty"},
            {"text": "Third source.", "accredit": "Herald"},
        ],
        "input_headline": "  Editor headline  ",
        "preset_instructions": "Lead with the vote",
        "preset_blobs": 2,
        "preset_length": "700-850",
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_registry_maps_source_types_to_pipelines() -> None:
    assert get_pipeline("single") is DIGEST_PIPELINE
    assert get_pipeline("multi") is AGGREGATE_PIPELINE
    assert set(PIPELINES) == {"single", "multi"}


def test_unknown_source_type_raises() -> None:
    with pytest.raises(UnknownSourceTypeError):
        get_pipeline("video")


def test_pipeline_step_counts() -> None:
    assert DIGEST_PIPELINE.total_steps == 7
    assert AGGREGATE_PIPELINE.total_steps == 8
    assert [step.name for step in DIGEST_PIPELINE.steps][-1] == "attribute_sentences"
    assert [step.name for step in AGGREGATE_PIPELINE.steps][-1] == "color_code"


def test_check_definition_rejects_out_of_order_requirements() -> None:
    steps = list(DIGEST_PIPELINE.steps)
    steps[1], steps[2] = replace(steps[2], number=2), replace(steps[1], number=3)
    broken = replace(DIGEST_PIPELINE, steps=tuple(steps))

    with pytest.raises(ValueError, match="requires"):
        check_definition(broken)


def test_check_definition_rejects_gaps_in_numbering() -> None:
    steps = (DIGEST_PIPELINE.steps[0], replace(DIGEST_PIPELINE.steps[1], number=5))

    with pytest.raises(ValueError, match="numbered"):
        check_definition(replace(DIGEST_PIPELINE, steps=steps))


def test_article_inputs_number_sources_and_trim_headline() -> None:
    inputs = ArticleInputs.from_article(_article())  # type: ignore[arg-type]

    assert [source.number for source in inputs.sources] == [1, 3]
    assert inputs.sources[1].tag == "Source 3 Herald"
    assert inputs.primary_source.primary is True
    assert inputs.headline_suggestion == "Editor headline"
    assert inputs.blob_count == 2
    assert inputs.length == "700-850"


def test_sources_with_facts_prefers_latest_pass() -> None:
    state = RunState(inputs=ArticleInputs.from_article(_article()))  # type: ignore[arg-type]
    state.outputs["facts_first_pass"] = {"1": "first pass", "3": "herald first"}
    state.outputs["facts_second_pass"] = {"1": "second pass"}

    sources = state.sources_with_facts()

    assert sources[0].facts_second_pass == "second pass"
    assert sources[1].facts_first_pass == "herald first"
    assert sources[1].facts_second_pass == ""
    assert state.inputs.sources[0].facts_first_pass == ""


def test_editor_headline_overrides_generated_one_and_blobs_are_capped() -> None:
    state = RunState(inputs=ArticleInputs.from_article(_article()))  # type: ignore[arg-type]
    output = HeadlineBlobsOutput(headline="Generated", blobs=["one", " ", "two", "three"])

    collected = collect_headline_and_blobs(state, output)

    assert collected == {"headline": "Editor headline", "blobs": ["one", "two"]}
    assert headline_fields(collected) == {"headline": "Editor headline", "blob": "one\ntwo"}


def test_generated_headline_used_without_suggestion() -> None:
    state = RunState(inputs=ArticleInputs.from_article(_article(input_headline=None)))  # type: ignore[arg-type]

    collected = collect_headline_and_blobs(state, HeadlineBlobsOutput(headline=" Generated ", blobs=["one"]))

    assert collected["headline"] == "Generated"


def test_aggregate_validation_requires_body_over_minimum() -> None:
    state = RunState(inputs=ArticleInputs.from_article(_article()))  # type: ignore[arg-type]
    state.outputs.update(headline="Budget passes", blobs=["Harbour loses out"])

    state.outputs["final_body"] = "x" * MIN_AGGREGATE_BODY_LENGTH
    assert AGGREGATE_PIPELINE.validate_outputs(state)

    state.outputs["final_body"] = "x" * (MIN_AGGREGATE_BODY_LENGTH + 1)
    assert AGGREGATE_PIPELINE.validate_outputs(state) == []


def test_digest_validation_reports_each_missing_output() -> None:
    state = RunState(inputs=ArticleInputs.from_article(_article(source_type="single")))  # type: ignore[arg-type]

    problems = DIGEST_PIPELINE.validate_outputs(state)

    assert problems == ["headline is empty", "no blobs", "final article is empty"]


def test_step_inputs_build_from_accumulated_outputs() -> None:
    state = RunState(inputs=ArticleInputs.from_article(_article(source_type="single")))  # type: ignore[arg-type]
    state.outputs.update(
        quotes=["q1"],
        summary="- fact",
        headline="Headline",
        blobs=["Blob"],
        outline="1. Lead",
        draft="Draft",
        paraphrased="Paraphrased",
    )

    for step in DIGEST_PIPELINE.steps:
        assert state.missing(step.requires) == []
        step.build_input(state)

    writer_input = DIGEST_PIPELINE.steps[4].build_input(state)
    assert writer_input.length == "700-850"
    assert "Headline: Headline" in writer_input.headline_and_blobs
