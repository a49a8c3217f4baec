"""Rewrite adapters: digest paraphrasing and aggregate rewrite passes."""

from pydantic import BaseModel

from newsroom.agents.base_agent import BaseAgent


class RewriteInput(BaseModel):
    """Input shared by every rewrite pass."""

    source_material: str
    article: str


class RewriteOutput(BaseModel):
    """Rewritten article body."""

    article: str


class _RewriteAgent(BaseAgent[RewriteInput, RewriteOutput]):
    model_tier = "standard"
    temperature = 0.3
    max_tokens = 4000
    required_output_fields = ("article",)

    user_template = """Source Content:
{{source_material}}

<article>
{{article}}
</article>"""

    @property
    def output_type(self) -> type[RewriteOutput]:
        return RewriteOutput

    def _build_variables(self, input_data: RewriteInput) -> dict[str, str]:
        return {
            "source_material": input_data.source_material,
            "article": input_data.article,
        }


class ParaphraseAgent(_RewriteAgent):
    """Paraphrase a digest draft away from the source wording."""

    system_template = """You are a copy editor.

Paraphrase the article so no sentence copies the source's wording, except for
direct quotes, which stay verbatim with their attribution. Keep every fact,
name and number unchanged and keep the paragraph order."""


class ArticleRewriterAgent(_RewriteAgent):
    """First rewrite of an aggregate draft."""

    model_tier = "reasoning"
    system_template = """You are a senior editor combining reporting from several outlets.

Rewrite the article so it reads as one coherent story:
- Merge overlapping facts from different sources and keep the strongest quote.
- Keep a source tag after every sentence that uses sourced material.
- Remove repetition and tighten every paragraph."""


class ArticleRewriterSecondPassAgent(_RewriteAgent):
    """Second rewrite of an aggregate draft."""

    system_template = """You are doing the final line edit on a multi-source article.

Check every sentence against the sources, fix any fact that drifted, keep quotes
verbatim, keep the source tags, and smooth transitions between paragraphs. Do
not add new material."""
