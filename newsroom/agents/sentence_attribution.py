"""Sentence-per-line attribution adapter for digests."""

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent


class SentenceAttributionInput(BaseModel):
    """Input for final formatting."""

    article: str


class SentenceAttributionOutput(BaseModel):
    """Final formatted article."""

    article: str = Field(description="One sentence per line, each ending with its attribution")


class SentenceAttributionAgent(BaseAgent[SentenceAttributionInput, SentenceAttributionOutput]):
    """Put every sentence on its own line with an attribution."""

    model_tier = "fast"
    temperature = 0.2
    max_tokens = 4000
    required_output_fields = ("article",)

    system_template = """Reformat the article so that each sentence sits on its own line.
Every sentence that states a fact from the source must end with its attribution
(for example: said Smith, according to Reuters). Do not change any other words."""

    user_template = """<article>
{{article}}
</article>"""

    @property
    def output_type(self) -> type[SentenceAttributionOutput]:
        return SentenceAttributionOutput

    def _build_variables(self, input_data: SentenceAttributionInput) -> dict[str, str]:
        return {"article": input_data.article}
