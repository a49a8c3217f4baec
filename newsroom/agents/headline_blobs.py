"""Headline and blob adapter."""

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent


class HeadlineBlobsInput(BaseModel):
    """Input for headline and blob generation."""

    blob_count: int = Field(ge=1, le=6)
    headline_suggestion: str = ""
    instructions: str = ""
    source_material: str
    summary: str = ""
    quotes: list[str] = Field(default_factory=list)


class HeadlineBlobsOutput(BaseModel):
    """Headline plus short teaser sentences."""

    headline: str = Field(description="A punchy headline with the most newsworthy, timely development")
    blobs: list[str] = Field(
        default_factory=list,
        description="Short, punchy sentences (10-20 words) covering the core highlights",
    )


class HeadlineBlobsAgent(BaseAgent[HeadlineBlobsInput, HeadlineBlobsOutput]):
    """Write a headline and a fixed number of blobs."""

    model_tier = "standard"
    temperature = 0.5
    max_tokens = 1000
    required_output_fields = ("headline", "blobs")

    system_template = """We are expert journalists writing a headline and a set of short
sentences (blobs) for an article.

INSTRUCTIONS:
- The headline captures the most important, most recent development. It is
  clear, factual, specific and attention grabbing.
- Each blob is 10-20 words, starts with a different word and covers a separate
  highlight. Blobs may carry short direct quotes in single quotation marks.
- Credit the author or publication of the source in the first blob.
- If the editor suggests a headline or blob content, use it.
- Even dense material (court rulings, science) must read as plain, easy English."""

    user_template = """Number of Blobs: {{blob_count}}
Suggested headline: {{headline_suggestion}}

IMPORTANT EDITOR NOTES:
{{editor_notes}}

Source Content:
{{source_material}}

Facts and summary of the source content to use as reference:
<summary>
{{summary}}
</summary>

Quotes that may be used as additional reference:
<quote-list>
{{quotes}}
</quote-list>"""

    assistant_template = (
        "Here is the attention-grabbing headline and the {{blob_count}} requested blobs, "
        "each only 10-20 words long and written in plain English."
    )

    @property
    def output_type(self) -> type[HeadlineBlobsOutput]:
        return HeadlineBlobsOutput

    def _build_variables(self, input_data: HeadlineBlobsInput) -> dict[str, object]:
        return {
            "blob_count": input_data.blob_count,
            "headline_suggestion": input_data.headline_suggestion,
            "editor_notes": input_data.instructions,
            "source_material": input_data.source_material,
            "summary": input_data.summary,
            "quotes": input_data.quotes,
        }
