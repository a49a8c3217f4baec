"""Article drafting adapter."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent

LENGTH_GUIDANCE = {
    "100-250": "Write 100 to 250 words in 2 to 4 short paragraphs.",
    "400-550": "Write 400 to 550 words in 5 to 8 paragraphs.",
    "700-850": "Write 700 to 850 words in 8 to 12 paragraphs.",
    "1000-1200": "Write 1000 to 1200 words in 12 to 16 paragraphs.",
}


class ArticleWriterInput(BaseModel):
    """Input for the drafting step."""

    length: str = "400-550"
    instructions: str = ""
    source_material: str
    is_primary_source: bool = False
    headline_and_blobs: str
    summary: str = ""
    outline: str


class ArticleWriterOutput(BaseModel):
    """Drafted article body."""

    article: str = Field(description="Full article body as plain text paragraphs separated by blank lines")


class ArticleWriterAgent(BaseAgent[ArticleWriterInput, ArticleWriterOutput]):
    """Write the article body from the outline."""

    model_tier = "reasoning"
    temperature = 0.3
    max_tokens = 4000
    required_output_fields = ("article",)

    system_template = """Today is {{current_date}}. You are a senior news writer.

Write the article that sits under the given headline and blobs:
- Follow the outline paragraph by paragraph.
- Attribute every fact to its source; keep quotes verbatim.
- When the material is a primary source (the outlet's own reporting), report it
  directly instead of attributing it to another outlet.
- Use short paragraphs and plain language. No subheadings, no bullet points."""

    user_template = """Length: {{length_guidance}}
Primary source: {{is_primary_source}}

EDITOR NOTES:
{{editor_notes}}

{{headline_and_blobs}}

Outline:
{{outline}}

Summary:
{{summary}}

Source Content:
{{source_material}}"""

    @property
    def output_type(self) -> type[ArticleWriterOutput]:
        return ArticleWriterOutput

    def _system_variables(self) -> dict[str, Any]:
        return {"current_date": date.today().strftime("%B %d, %Y")}

    def _build_variables(self, input_data: ArticleWriterInput) -> dict[str, object]:
        return {
            "length_guidance": LENGTH_GUIDANCE.get(input_data.length, input_data.length),
            "is_primary_source": input_data.is_primary_source,
            "editor_notes": input_data.instructions,
            "headline_and_blobs": input_data.headline_and_blobs,
            "outline": input_data.outline,
            "summary": input_data.summary,
            "source_material": input_data.source_material,
        }
