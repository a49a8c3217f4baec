"""Step descriptors and per-run state shared by every pipeline variant."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from newsroom.agents.base_agent import BaseAgent, StepUsage
from newsroom.agents.inputs import SourceMaterial
from newsroom.models.article import Article

OutputT = TypeVar("OutputT")


class StepResult(Generic[OutputT]):
    """Result of a step execution."""

    def __init__(
        self,
        success: bool,
        data: OutputT | None = None,
        error: str | None = None,
        error_traceback: str | None = None,
    ) -> None:
        self.success = success
        self.data = data
        self.error = error
        self.error_traceback = error_traceback


@dataclass(frozen=True)
class ArticleInputs:
    """Snapshot of the article fields a run reads."""

    article_id: str
    org_id: str
    slug: str
    version: int
    source_type: str
    created_by: str
    sources: tuple[SourceMaterial, ...]
    headline_suggestion: str = ""
    instructions: str = ""
    blob_count: int = 1
    length: str = "400-550"

    @classmethod
    def from_article(cls, article: Article) -> ArticleInputs:
        sources = tuple(
            SourceMaterial(
                number=index,
                text=str(raw.get("text") or ""),
                accredit=str(raw.get("accredit") or ""),
                description=str(raw.get("description") or ""),
                url=str(raw.get("url") or ""),
                verbatim=bool(raw.get("verbatim")),
                primary=bool(raw.get("primary")),
                base=bool(raw.get("base")),
            )
            for index, raw in enumerate(article.input_sources or [], start=1)
            if raw.get("text")
        )
        return cls(
            article_id=str(article.id),
            org_id=article.org_id,
            slug=article.slug,
            version=article.version,
            source_type=article.source_type,
            created_by=article.created_by,
            sources=sources,
            headline_suggestion=(article.input_headline or "").strip(),
            instructions=article.preset_instructions or "",
            blob_count=article.preset_blobs,
            length=article.preset_length,
        )

    @property
    def primary_source(self) -> SourceMaterial:
        return self.sources[0]


@dataclass
class RunState:
    """Outputs accumulated during one run, in step order."""

    inputs: ArticleInputs
    outputs: dict[str, Any] = field(default_factory=dict)
    usage: list[tuple[int, StepUsage]] = field(default_factory=list)

    def get(self, key: str, default: Any = None) -> Any:
        return self.outputs.get(key, default)

    def missing(self, keys: tuple[str, ...]) -> list[str]:
        return [key for key in keys if key not in self.outputs]

    @property
    def input_tokens(self) -> int:
        return sum(usage.input_tokens for _, usage in self.usage)

    @property
    def output_tokens(self) -> int:
        return sum(usage.output_tokens for _, usage in self.usage)

    def sources_with_facts(self) -> list[SourceMaterial]:
        """Sources merged with any fact splits produced so far."""
        first = self.outputs.get("facts_first_pass") or {}
        second = self.outputs.get("facts_second_pass") or {}
        return [
            source.model_copy(
                update={
                    "facts_first_pass": first.get(str(source.number), ""),
                    "facts_second_pass": second.get(str(source.number), ""),
                }
            )
            for source in self.inputs.sources
        ]


@dataclass(frozen=True)
class PipelineStep:
    """One ordered transformation with a fixed input and output contract.

    ``collect`` turns the adapter output into run outputs (JSON-friendly
    values keyed by name); ``article_fields`` maps those outputs onto article
    columns written alongside the step's progress marker.
    """

    number: int
    name: str
    label: str
    adapter: Callable[[], BaseAgent[Any, Any]]
    build_input: Callable[[RunState], BaseModel]
    collect: Callable[[RunState, Any], dict[str, Any]]
    requires: tuple[str, ...] = ()
    produces: tuple[str, ...] = ()
    article_fields: Callable[[dict[str, Any]], dict[str, Any]] | None = None


@dataclass(frozen=True)
class PipelineDefinition:
    """Fixed, linear step sequence for one source type."""

    source_type: str
    steps: tuple[PipelineStep, ...]
    final_output: str = "final_body"
    # Final body must be strictly longer than this many characters
    min_body_length: int = 0

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def validate_outputs(self, state: RunState) -> list[str]:
        """Problems that keep a finished run from counting as a success."""
        problems: list[str] = []
        if not str(state.get("headline") or "").strip():
            problems.append("headline is empty")
        blobs = [blob for blob in state.get("blobs") or [] if str(blob).strip()]
        if not blobs:
            problems.append("no blobs")
        body = str(state.get(self.final_output) or "").strip()
        if not body:
            problems.append("final article is empty")
        elif len(body) <= self.min_body_length:
            problems.append(
                f"final article is {len(body)} characters, needs more than {self.min_body_length}"
            )
        return problems


def check_definition(definition: PipelineDefinition) -> None:
    """Raise ValueError unless steps are numbered 1..N and every input is produced upstream."""
    available: set[str] = set()
    for index, step in enumerate(definition.steps, start=1):
        if step.number != index:
            raise ValueError(
                f"{definition.source_type} step {step.name} is numbered {step.number}, expected {index}"
            )
        unmet = [key for key in step.requires if key not in available]
        if unmet:
            raise ValueError(
                f"{definition.source_type} step {step.number} requires {unmet} before they are produced"
            )
        available.update(step.produces)
    if definition.final_output not in available:
        raise ValueError(f"{definition.source_type} pipeline never produces {definition.final_output}")
