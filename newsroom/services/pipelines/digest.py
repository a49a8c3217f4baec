"""Single-source (digest) pipeline: seven steps from one source text."""

from __future__ import annotations

from typing import Any

from newsroom.agents.article_outline import ArticleOutlineAgent, ArticleOutlineInput, ArticleOutlineOutput
from newsroom.agents.article_rewriter import ParaphraseAgent, RewriteInput, RewriteOutput
from newsroom.agents.article_writer import ArticleWriterAgent, ArticleWriterInput, ArticleWriterOutput
from newsroom.agents.fact_quotes import FactQuotesAgent, FactQuotesInput, FactQuotesOutput
from newsroom.agents.fact_summarizer import FactSummarizerAgent, FactSummaryInput, FactSummaryOutput
from newsroom.agents.headline_blobs import HeadlineBlobsAgent, HeadlineBlobsInput, HeadlineBlobsOutput
from newsroom.agents.inputs import format_headline_and_blobs, format_source
from newsroom.agents.sentence_attribution import (
    SentenceAttributionAgent,
    SentenceAttributionInput,
    SentenceAttributionOutput,
)
from newsroom.services.pipelines.shared import collect_headline_and_blobs, headline_fields
from newsroom.services.pipelines.steps import PipelineDefinition, PipelineStep, RunState


def _source_block(state: RunState) -> str:
    return format_source(state.inputs.primary_source)


def _extract_quotes_input(state: RunState) -> FactQuotesInput:
    source = state.inputs.primary_source
    return FactQuotesInput(
        source_accredit=source.accredit,
        source_description=source.description,
        source_text=source.text,
    )


def _summarize_input(state: RunState) -> FactSummaryInput:
    source = state.inputs.primary_source
    return FactSummaryInput(
        source_accredit=source.accredit,
        source_description=source.description,
        source_text=source.text,
        instructions=state.inputs.instructions,
        quotes=state.get("quotes") or [],
    )


def _headline_input(state: RunState) -> HeadlineBlobsInput:
    return HeadlineBlobsInput(
        blob_count=state.inputs.blob_count,
        headline_suggestion=state.inputs.headline_suggestion,
        instructions=state.inputs.instructions,
        source_material=_source_block(state),
        summary=state.get("summary", ""),
        quotes=state.get("quotes") or [],
    )


def _outline_input(state: RunState) -> ArticleOutlineInput:
    return ArticleOutlineInput(
        instructions=state.inputs.instructions,
        source_material=_source_block(state),
        summary=state.get("summary", ""),
        quotes=state.get("quotes") or [],
        headline_and_blobs=format_headline_and_blobs(state.get("headline"), state.get("blobs")),
    )


def _write_input(state: RunState) -> ArticleWriterInput:
    return ArticleWriterInput(
        length=state.inputs.length,
        instructions=state.inputs.instructions,
        source_material=_source_block(state),
        is_primary_source=state.inputs.primary_source.primary,
        headline_and_blobs=format_headline_and_blobs(state.get("headline"), state.get("blobs")),
        summary=state.get("summary", ""),
        outline=state.get("outline"),
    )


def _paraphrase_input(state: RunState) -> RewriteInput:
    return RewriteInput(source_material=_source_block(state), article=state.get("draft"))


def _attribution_input(state: RunState) -> SentenceAttributionInput:
    return SentenceAttributionInput(article=state.get("paraphrased"))


def _collect_quotes(_state: RunState, output: FactQuotesOutput) -> dict[str, Any]:
    return {"quotes": [quote.strip() for quote in output.quotes if quote.strip()]}


def _collect_summary(_state: RunState, output: FactSummaryOutput) -> dict[str, Any]:
    return {"summary": output.summary.strip()}


def _collect_headline(state: RunState, output: HeadlineBlobsOutput) -> dict[str, Any]:
    return collect_headline_and_blobs(state, output)


def _collect_outline(_state: RunState, output: ArticleOutlineOutput) -> dict[str, Any]:
    return {"outline": output.outline.strip()}


def _collect_draft(_state: RunState, output: ArticleWriterOutput) -> dict[str, Any]:
    return {"draft": output.article.strip()}


def _collect_paraphrased(_state: RunState, output: RewriteOutput) -> dict[str, Any]:
    return {"paraphrased": output.article.strip()}


def _collect_final(_state: RunState, output: SentenceAttributionOutput) -> dict[str, Any]:
    return {"final_body": output.article.strip()}


DIGEST_PIPELINE = PipelineDefinition(
    source_type="single",
    steps=(
        PipelineStep(
            number=1,
            name="extract_fact_quotes",
            label="Extract Fact Quotes",
            adapter=FactQuotesAgent,
            build_input=_extract_quotes_input,
            collect=_collect_quotes,
            produces=("quotes",),
        ),
        PipelineStep(
            number=2,
            name="summarize_facts",
            label="Summarize Facts",
            adapter=FactSummarizerAgent,
            build_input=_summarize_input,
            collect=_collect_summary,
            requires=("quotes",),
            produces=("summary",),
            article_fields=lambda outputs: {"summary": outputs["summary"]},
        ),
        PipelineStep(
            number=3,
            name="headline_and_blobs",
            label="Write Headline and Blobs",
            adapter=HeadlineBlobsAgent,
            build_input=_headline_input,
            collect=_collect_headline,
            requires=("quotes", "summary"),
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
            requires=("summary", "headline", "blobs"),
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
            requires=("summary", "headline", "blobs", "outline"),
            produces=("draft",),
        ),
        PipelineStep(
            number=6,
            name="paraphrase_article",
            label="Paraphrase Article",
            adapter=ParaphraseAgent,
            build_input=_paraphrase_input,
            collect=_collect_paraphrased,
            requires=("draft",),
            produces=("paraphrased",),
        ),
        PipelineStep(
            number=7,
            name="attribute_sentences",
            label="Sentence Per Line Attribution",
            adapter=SentenceAttributionAgent,
            build_input=_attribution_input,
            collect=_collect_final,
            requires=("paraphrased",),
            produces=("final_body",),
        ),
    ),
)
