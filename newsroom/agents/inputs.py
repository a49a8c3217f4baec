"""Source material shared by step adapters."""

from pydantic import BaseModel, Field


class SourceMaterial(BaseModel):
    """One numbered source text as seen by an adapter."""

    number: int = Field(ge=1)
    text: str
    accredit: str = ""
    description: str = ""
    url: str = ""
    verbatim: bool = False
    primary: bool = False
    base: bool = False
    facts_first_pass: str = ""
    facts_second_pass: str = ""

    @property
    def tag(self) -> str:
        label = f"Source {self.number}"
        return f"{label} {self.accredit}".strip() if self.accredit else label


def format_source(source: SourceMaterial, *, include_text: bool = True) -> str:
    """Render one source block for a prompt."""
    lines = [f"<{source.tag}>"]
    if source.description:
        lines.append(f"Description: {source.description}")
    if source.url:
        lines.append(f"URL: {source.url}")
    flags = [
        name
        for name, enabled in (
            ("primary source", source.primary),
            ("base source", source.base),
            ("use verbatim", source.verbatim),
        )
        if enabled
    ]
    if flags:
        lines.append(f"Flags: {', '.join(flags)}")
    if include_text:
        lines.append(source.text)
    if source.facts_second_pass:
        lines.append(f"Facts:\n{source.facts_second_pass}")
    elif source.facts_first_pass:
        lines.append(f"Facts:\n{source.facts_first_pass}")
    lines.append(f"</{source.tag}>")
    return "\n".join(lines)


def format_sources(sources: list[SourceMaterial], *, include_text: bool = True) -> str:
    return "\n\n".join(format_source(source, include_text=include_text) for source in sources)


def format_headline_and_blobs(headline: str, blobs: list[str]) -> str:
    blob_lines = "\n".join(f"Blob: {blob}" for blob in blobs)
    return f"Headline: {headline}\n{blob_lines}".strip()
