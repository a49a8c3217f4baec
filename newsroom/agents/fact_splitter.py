"""Fact splitting adapters for multi-source aggregates."""

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent
from newsroom.agents.inputs import SourceMaterial, format_sources


class SourceFacts(BaseModel):
    """Tagged facts extracted from one numbered source."""

    number: int = Field(ge=1, description="Source number as given in the prompt")
    facts: str = Field(description="Source lines with a source tag after every sentence")


class FactSplitInput(BaseModel):
    """Input for both fact splitting passes."""

    sources: list[SourceMaterial] = Field(min_length=1)


class FactSplitOutput(BaseModel):
    """Per-source fact splits."""

    sources: list[SourceFacts] = Field(default_factory=list)


class FactSplitterAgent(BaseAgent[FactSplitInput, FactSplitOutput]):
    """First pass: reprint each source as tagged fact lines."""

    model_tier = "standard"
    temperature = 0.3
    max_tokens = 4000
    required_output_fields = ("sources",)

    system_template = """Instructions:
Reprint each source's article content and add a source tag after each sentence,
for example "(Source 2 Reuters)". Credit the author where the text names one.

Rules:
- Do not alter the article lines themselves; preserve all direct quotes.
- Remove extraneous text such as ads, "click here" links and newsletter prompts.
- For sources flagged "use verbatim", reprint the editor-written text word for word.
- Return one entry per source, using the source number from the input."""

    user_template = """{{sources}}"""

    @property
    def output_type(self) -> type[FactSplitOutput]:
        return FactSplitOutput

    def _build_variables(self, input_data: FactSplitInput) -> dict[str, str]:
        return {"sources": format_sources(input_data.sources)}


class FactSplitterSecondPassAgent(FactSplitterAgent):
    """Second pass: split tagged lines into short fact bits."""

    system_template = """Instructions:
Each source below already carries tagged fact lines. Break them into short bits of
one or two facts each, keep every source tag, and drop duplicates within a source.

Rules:
- Keep quotes verbatim and keep attributions attached to their quotes.
- Keep the order in which facts appear in the source.
- Return one entry per source, using the source number from the input."""

    user_template = """{{sources}}

Split the tagged facts of every source into short fact bits."""

    def _build_variables(self, input_data: FactSplitInput) -> dict[str, str]:
        return {"sources": format_sources(input_data.sources, include_text=False)}
