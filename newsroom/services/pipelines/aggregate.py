"""Multi-source (aggregate) pipeline: eight steps across several sources."""

from __future__ import annotations

from typing import Any

from newsroom.agents.article_outline import ArticleOutlineAgent, ArticleOutlineInput, ArticleOutlineOutput
from newsroom.agents.article_rewriter import (
    ArticleRewriterAgent,
    ArticleRewriterSecondPassAgent,
    RewriteInput,
    RewriteOutput,
)
from newsroom.agents.article_writer import ArticleWriterAgent, ArticleWriterInput, ArticleWriterOutput
from newsroom.agents.color_coder import ColorCodeAgent, ColorCodeInput, ColorCodeOutput
from newsroom.agents.fact_splitter import (
    FactSplitInput,
    FactSplitOutput,
    FactSplitterAgent,
    FactSplitterSecondPassAgent,
)
from newsroom.agents.headline_blobs import HeadlineBlobsAgent, HeadlineBlobsInput, HeadlineBlobsOutput
from newsroom.agents.inputs import format_headline_and_blobs, format_sources
from newsroom.services.pipelines.shared import collect_headline_and_blobs, headline_fields
from newsroom.services.pipelines.steps import PipelineDefinition, PipelineStep, RunState

# Final aggregate body must be longer than this to count as publishable
MIN_AGGREGATE_BODY_LENGTH = 100


def _sources_block(state: RunState) -> str:
    return format_sources(state.sources_with_facts())


def _facts_by_source(state: RunState, output: FactSplitOutput) -> dict[str, str]:
    known = {source.number for source in state.inputs.sources}
    facts: dict[str, str] = {}
    for entry in output.sources:
        if entry.number in known and entry.facts.strip():
            facts[str(entry.number)] = entry.facts.strip()
    return facts


def _split_input(state: RunState) -> FactSplitInput:
    return FactSplitInput(sources=state.sources_with_facts())


def _collect_first_pass(state: RunState, output: FactSplitOutput) -> dict[str, Any]:
    return {"facts_first_pass": _facts_by_source(state, output)}


def _collect_second_pass(state: RunState, output: FactSplitOutput) -> dict[str, Any]:
    return {"facts_second_pass": _facts_by_source(state, output)}


def _headline_input(state: RunState) -> HeadlineBlobsInput:
    return HeadlineBlobsInput(
        blob_count=state.inputs.blob_count,
        headline_suggestion=state.inputs.headline_suggestion,
        instructions=state.inputs.instructions,
        source_material=_sources_block(state),
    )


def _collect_headline(state: RunState, output: HeadlineBlobsOutput) -> dict[str, Any]:
    return collect_headline_and_blobs(state, output)


def _outline_input(state: RunState) -> ArticleOutlineInput:
    return ArticleOutlineInput(
        instructions=state.inputs.instructions,
        source_material=_sources_block(state),
        headline_and_blobs=format_headline_and_blobs(state.get("headline"), state.get("blobs")),
    )


def _collect_outline(_state: RunState, output: ArticleOutlineOutput) -> dict[str, Any]:
    return {"outline": output.outline.strip()}


def _write_input(state: RunState) -> ArticleWriterInput:
    return ArticleWriterInput(
        length=state.inputs.length,
        instructions=state.inputs.instructions,
        source_material=_sources_block(state),
        is_primary_source=any(source.primary for source in state.inputs.sources),
        headline_and_blobs=format_headline_and_blobs(state.get("headline"), state.get("blobs")),
        outline=state.get("outline"),
    )


def _collect_draft(_state: RunState, output: ArticleWriterOutput) -> dict[str, Any]:
    return {"draft": output.article.strip()}


def _rewrite_input(state: RunState) -> RewriteInput:
    return RewriteInput(source_material=_sources_block(state), article=state.get("draft"))


def _collect_rewrite(_state: RunState, output: RewriteOutput) -> dict[str, Any]:
    return {"rewrite": output.article.strip()}


def _second_rewrite_input(state: RunState) -> RewriteInput:
    return RewriteInput(source_material=_sources_block(state), article=state.get("rewrite"))


def _collect_second_rewrite(_state: RunState, output: RewriteOutput) -> dict[str, Any]:
    return {"second_rewrite": output.article.strip()}


def _color_code_input(state: RunState) -> ColorCodeInput:
    return ColorCodeInput(
        article=state.get("second_rewrite"),
        source_tags=[source.tag for source in state.inputs.sources],
    )


def _collect_final(_state: RunState, output: ColorCodeOutput) -> dict[str, Any]:
    return {"final_body": output.article.strip()}


AGGREGATE_PIPELINE = PipelineDefinition(
    source_type="multi",
    min_body_length=MIN_AGGREGATE_BODY_LENGTH,
    steps=(
        PipelineStep(
            number=1,
            name="split_facts",
            label="Facts Bit Splitting",
            adapter=FactSplitterAgent,
            build_input=_split_input,
            collect=_collect_first_pass,
            produces=("facts_first_pass",),
        ),
        PipelineStep(
            number=2,
            name="split_facts_second_pass",
            label="Facts Bit Splitting 2",
            adapter=FactSplitterSecondPassAgent,
            build_input=_split_input,
            collect=_collect_second_pass,
            requires=("facts_first_pass",),
            produces=("facts_second_pass",),
        ),
        PipelineStep(
            number=3,
            name="headline_and_blobs",
            label="Headlines and Blobs",
            adapter=HeadlineBlobsAgent,
            build_input=_headline_input,
            collect=_collect_headline,
            requires=("facts_second_pass",),
            produces=("headline", "blobs"),
            article_fields=headline_fields,
        ),
        PipelineStep(
            number=4,
            name="article_outline",
            label="Write Article Outline",
            adapter=ArticleOutlineAgent,
            build_input=_outline_input,
            collect=_collect_outline,
            requires=("facts_second_pass", "headline", "blobs"),
            produces=("outline",),
            article_fields=lambda outputs: {"outline": outputs["outline"]},
        ),
        PipelineStep(
            number=5,
            name="write_article",
            label="Write Article",
            adapter=ArticleWriterAgent,
            build_input=_write_input,
            collect=_collect_draft,
            requires=("facts_second_pass", "headline", "blobs", "outline"),
            produces=("draft",),
        ),
        PipelineStep(
            number=6,
            name="rewrite_article",
            label="Rewrite Article",
            adapter=ArticleRewriterAgent,
            build_input=_rewrite_input,
            collect=_collect_rewrite,
            requires=("draft",),
            produces=("rewrite",),
        ),
        PipelineStep(
            number=7,
            name="rewrite_article_second_pass",
            label="Rewrite Article 2",
            adapter=ArticleRewriterSecondPassAgent,
            build_input=_second_rewrite_input,
            collect=_collect_second_rewrite,
            requires=("rewrite",),
            produces=("second_rewrite",),
        ),
        PipelineStep(
            number=8,
            name="color_code",
            label="Color Code",
            adapter=ColorCodeAgent,
            build_input=_color_code_input,
            collect=_collect_final,
            requires=("second_rewrite",),
            produces=("final_body",),
        ),
    ),
)
