"""Pipeline definitions keyed by article source type."""

from __future__ import annotations

from newsroom.core.exceptions import UnknownSourceTypeError
from newsroom.services.pipelines.aggregate import AGGREGATE_PIPELINE
from newsroom.services.pipelines.digest import DIGEST_PIPELINE
from newsroom.services.pipelines.steps import PipelineDefinition, check_definition

PIPELINES: dict[str, PipelineDefinition] = {
    DIGEST_PIPELINE.source_type: DIGEST_PIPELINE,
    AGGREGATE_PIPELINE.source_type: AGGREGATE_PIPELINE,
}

for _definition in PIPELINES.values():
    check_definition(_definition)


def get_pipeline(source_type: str) -> PipelineDefinition:
    try:
        return PIPELINES[source_type]
    except KeyError:
        raise UnknownSourceTypeError(source_type) from None
