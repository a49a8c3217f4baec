"""Source color coding adapter for aggregates."""

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent


class ColorCodeInput(BaseModel):
    """Input for color coding."""

    article: str
    source_tags: list[str] = Field(default_factory=list)


class ColorCodeOutput(BaseModel):
    """Article with source markers normalized for highlighting."""

    article: str = Field(
        description="Article text where every sentence ends with a [Source N] marker",
    )


class ColorCodeAgent(BaseAgent[ColorCodeInput, ColorCodeOutput]):
    """Normalize source tags so editors can color each sentence by source."""

    model_tier = "fast"
    temperature = 0.2
    max_tokens = 4000
    required_output_fields = ("article",)

    system_template = """Replace every source tag in the article with a marker of the
form [Source N], using the numbering from the source list. Put exactly one marker
at the end of each sentence that uses sourced material. Do not change any other
text."""

    user_template = """Sources:
{{source_tags}}

<article>
{{article}}
</article>"""

    @property
    def output_type(self) -> type[ColorCodeOutput]:
        return ColorCodeOutput

    def _build_variables(self, input_data: ColorCodeInput) -> dict[str, object]:
        return {"article": input_data.article, "source_tags": input_data.source_tags}
