"""Article outline adapter."""

from pydantic import BaseModel, Field

from newsroom.agents.base_agent import BaseAgent


class ArticleOutlineInput(BaseModel):
    """Input for the outline step."""

    instructions: str = ""
    source_material: str
    summary: str = ""
    quotes: list[str] = Field(default_factory=list)
    headline_and_blobs: str


class ArticleOutlineOutput(BaseModel):
    """Section-by-section outline."""

    outline: str = Field(description="Ordered outline, one line per paragraph, each naming its source")


class ArticleOutlineAgent(BaseAgent[ArticleOutlineInput, ArticleOutlineOutput]):
    """Plan the paragraph order of the article."""

    model_tier = "standard"
    temperature = 0.3
    max_tokens = 3000
    required_output_fields = ("outline",)

    system_template = """You are a news editor planning an article.

Write an outline that:
1. Opens with the development in the headline.
2. Follows with the facts behind each blob, in blob order.
3. Notes which source supports every paragraph.
4. Ends with background and context.
Keep it to one line per planned paragraph."""

    user_template = """EDITOR NOTES:
{{editor_notes}}

{{headline_and_blobs}}

Source Content:
{{source_material}}

Summary:
{{summary}}

Quotes:
{{quotes}}"""

    @property
    def output_type(self) -> type[ArticleOutlineOutput]:
        return ArticleOutlineOutput

    def _build_variables(self, input_data: ArticleOutlineInput) -> dict[str, object]:
        return {
            "editor_notes": input_data.instructions,
            "headline_and_blobs": input_data.headline_and_blobs,
            "source_material": input_data.source_material,
            "summary": input_data.summary,
            "quotes": input_data.quotes,
        }
