"""Quote extraction adapter for single-source digests."""

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent


class FactQuotesInput(BaseModel):
    """Input for quote extraction."""

    source_accredit: str = ""
    source_description: str = ""
    source_text: str


class FactQuotesOutput(BaseModel):
    """Verbatim quotes lifted from the source."""

    quotes: list[str] = Field(
        default_factory=list,
        description="Direct, verbatim quotes or fact sentences from the source, most newsworthy first",
    )


class FactQuotesAgent(BaseAgent[FactQuotesInput, FactQuotesOutput]):
    """Pull the quotable facts out of one source text."""

    model_tier = "fast"
    temperature = 0.2
    max_tokens = 3000
    required_output_fields = ("quotes",)

    system_template = """You are a meticulous news researcher.

Read the source and list the sentences and direct quotes that carry the story:
1. Copy each quote word for word, keeping the speaker attribution.
2. Prefer specific numbers, dates, names and striking statements.
3. Drop navigation text, ads, captions and boilerplate.
4. Never paraphrase and never invent material."""

    user_template = """Source: {{source_accredit}}
{{source_description}}

<source-text>
{{source_text}}
</source-text>

List the key quotes and fact sentences."""

    @property
    def output_type(self) -> type[FactQuotesOutput]:
        return FactQuotesOutput

    def _build_variables(self, input_data: FactQuotesInput) -> dict[str, str]:
        return {
            "source_accredit": input_data.source_accredit,
            "source_description": input_data.source_description,
            "source_text": input_data.source_text,
        }
