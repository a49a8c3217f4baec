"""Output handling shared by the digest and aggregate pipelines."""

from __future__ import annotations

from typing import Any

from newsroom.agents.headline_blobs import HeadlineBlobsOutput
from newsroom.services.pipelines.steps import RunState


def collect_headline_and_blobs(state: RunState, output: HeadlineBlobsOutput) -> dict[str, Any]:
    """Use the editor's headline when one was suggested and cap blobs at the requested count."""
    headline = state.inputs.headline_suggestion or output.headline.strip()
    blobs = [blob.strip() for blob in output.blobs if blob.strip()]
    return {"headline": headline, "blobs": blobs[: state.inputs.blob_count]}


def headline_fields(outputs: dict[str, Any]) -> dict[str, Any]:
    return {"headline": outputs["headline"], "blob": "\n".join(outputs["blobs"])}
