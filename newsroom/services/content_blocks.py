"""Deterministic rich-content blocks for finished articles."""

from __future__ import annotations

import re
from typing import Any

RICH_CONTENT_VERSION = 1

_SOURCE_MARKER = re.compile(r"\[Source (\d+)\]")


def _paragraph_block(line: str) -> dict[str, Any]:
    block: dict[str, Any] = {"block_type": "paragraph", "text": line}
    sources = sorted({int(number) for number in _SOURCE_MARKER.findall(line)})
    if sources:
        block["sources"] = sources
    return block


def build_rich_content(headline: str, blobs: list[str], body: str) -> dict[str, Any]:
    """Split a final body into headline, blob and paragraph blocks.

    Every non-empty body line becomes one paragraph block. ``[Source N]``
    markers left by color coding are surfaced as the block's ``sources``.
    """
    blocks: list[dict[str, Any]] = []
    if headline.strip():
        blocks.append({"block_type": "headline", "text": headline.strip()})
    for blob in blobs:
        if blob.strip():
            blocks.append({"block_type": "blob", "text": blob.strip()})
    for line in body.splitlines():
        if line.strip():
            blocks.append(_paragraph_block(line.strip()))
    return {"version": RICH_CONTENT_VERSION, "blocks": blocks}
