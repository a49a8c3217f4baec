"""Fact summary adapter for single-source digests."""

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent


class FactSummaryInput(BaseModel):
    """Input for the fact summary step."""

    source_accredit: str = ""
    source_description: str = ""
    source_text: str
    instructions: str = ""
    quotes: list[str] = Field(default_factory=list)


class FactSummaryOutput(BaseModel):
    """Condensed fact summary."""

    summary: str = Field(description="Bullet list of the key facts, newest development first")


class FactSummarizerAgent(BaseAgent[FactSummaryInput, FactSummaryOutput]):
    """Summarize the facts of a single source."""

    model_tier = "standard"
    temperature = 0.2
    max_tokens = 3000
    required_output_fields = ("summary",)

    system_template = """You are an expert journalist preparing notes for a digest article.

Summarize the facts of the source as a bullet list:
- Lead with the most recent and newsworthy development.
- Keep names, numbers, dates and attributions exact.
- Follow the editor notes when they narrow the focus.
- Do not add opinion or outside knowledge."""

    user_template = """EDITOR NOTES:
{{editor_notes}}

Source: {{source_accredit}}
{{source_description}}

<source-text>
{{source_text}}
</source-text>

Quotes already extracted:
<quote-list>
{{quotes}}
</quote-list>"""

    assistant_template = "Here is the factual summary of the source, most important facts first."

    @property
    def output_type(self) -> type[FactSummaryOutput]:
        return FactSummaryOutput

    def _build_variables(self, input_data: FactSummaryInput) -> dict[str, object]:
        return {
            "editor_notes": input_data.instructions,
            "source_accredit": input_data.source_accredit,
            "source_description": input_data.source_description,
            "source_text": input_data.source_text,
            "quotes": input_data.quotes,
        }
