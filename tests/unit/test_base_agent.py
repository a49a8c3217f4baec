"""Unit tests for step adapters built on BaseAgent."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from pydantic_ai import AgentRunResult
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel

from newsroom.agents.article_writer import ArticleWriterAgent
from newsroom.agents.base_agent import BaseAgent
from newsroom.agents.fact_quotes import FactQuotesAgent, FactQuotesInput
from newsroom.agents.fact_summarizer import FactSummarizerAgent, FactSummaryInput
from newsroom.config import settings
from newsroom.core.exceptions import AdapterError, AdapterTimeoutError, EmptyAdapterOutputError
from newsroom.services.pipelines.registry import PIPELINES
from newsroom.services.prompt_composer import template_variables

QUOTES_INPUT = FactQuotesInput(
    source_accredit="Gazette",
    source_description="City hall report",
    source_text="\"We are ready,\" the mayor said on Tuesday.",
)


@pytest.mark.asyncio
async def test_run_returns_structured_output_and_usage() -> None:
    model = TestModel(custom_output_args={"quotes": ["\"We are ready,\" the mayor said."]})
    adapter = FactQuotesAgent(model_override=model)

    result = await adapter.run(QUOTES_INPUT)

    assert result.output.quotes == ["\"We are ready,\" the mayor said."]
    assert result.usage.model == "test"
    assert result.usage.input_tokens > 0
    assert result.usage.output_tokens > 0
    assert "the mayor said on Tuesday" in result.prompts.user
    assert result.prompts.assistant is None


@pytest.mark.asyncio
async def test_empty_required_output_is_an_adapter_failure() -> None:
    adapter = FactQuotesAgent(model_override=TestModel(custom_output_args={"quotes": ["  "]}))

    with pytest.raises(EmptyAdapterOutputError) as exc_info:
        await adapter.run(QUOTES_INPUT)

    assert exc_info.value.fields == ["quotes"]


@pytest.mark.asyncio
async def test_slow_provider_times_out(monkeypatch: pytest.MonkeyPatch) -> None:
    async def slow_model(_messages: list[ModelMessage], _info: AgentInfo) -> ModelResponse:
        await asyncio.sleep(5)
        raise AssertionError("should have timed out")

    monkeypatch.setattr(settings, "llm_timeout_fast", 0.01)
    adapter = FactQuotesAgent(model_override=FunctionModel(slow_model))

    with pytest.raises(AdapterTimeoutError) as exc_info:
        await adapter.run(QUOTES_INPUT)

    assert exc_info.value.timeout_seconds == 0.01
    assert "FactQuotesAgent" in str(exc_info.value)


@pytest.mark.asyncio
async def test_provider_error_is_wrapped() -> None:
    def broken_model(_messages: list[ModelMessage], _info: AgentInfo) -> ModelResponse:
        raise RuntimeError("provider down")

    adapter = FactQuotesAgent(model_override=FunctionModel(broken_model))

    with pytest.raises(AdapterError) as exc_info:
        await adapter.run(QUOTES_INPUT)

    assert not isinstance(exc_info.value, AdapterTimeoutError)
    assert "provider down" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unreadable_usage_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_usage(_self: AgentRunResult[Any]) -> Any:
        raise TypeError("usage unavailable")

    monkeypatch.setattr(AgentRunResult, "usage", broken_usage)
    adapter = FactQuotesAgent(model_override=TestModel(custom_output_args={"quotes": ["A quote."]}))

    with pytest.raises(AdapterError) as exc_info:
        await adapter.run(QUOTES_INPUT)

    assert "TypeError: usage unavailable" in str(exc_info.value)


def test_assistant_template_is_appended_as_response_lead_in() -> None:
    adapter = FactSummarizerAgent(model_override=TestModel())
    prompts = adapter.build_prompts(
        FactSummaryInput(
            source_accredit="Gazette",
            source_text="The council met.",
            instructions="Focus on the vote",
            quotes=["first quote", "second quote"],
        )
    )

    message = adapter._user_message(prompts)

    assert prompts.assistant
    assert "Focus on the vote" in prompts.user
    assert "first quote\nsecond quote" in prompts.user
    assert message.startswith(prompts.user)
    assert message.endswith(f"Begin your response in this spirit:\n{prompts.assistant}")


def test_system_prompt_renders_current_date() -> None:
    adapter = ArticleWriterAgent(model_override=TestModel())

    assert "{{" not in adapter.system_prompt
    assert adapter.system_prompt.startswith("Today is ")


def test_rendered_prompts_are_trimmed() -> None:
    prompts = FactQuotesAgent(model_override=TestModel()).build_prompts(QUOTES_INPUT)

    assert prompts.system == prompts.system.strip()
    assert prompts.user == prompts.user.strip()
    assert prompts.user.startswith("Source: Gazette")


def test_model_resolution_prefers_runtime_override() -> None:
    assert FactQuotesAgent(model_override="openai:gpt-4o").model_name == "openai:gpt-4o"
    assert FactQuotesAgent().model_name == settings.get_model("fast")


def _adapter_classes() -> list[type[BaseAgent[Any, Any]]]:
    classes: dict[str, type[BaseAgent[Any, Any]]] = {}
    for definition in PIPELINES.values():
        for step in definition.steps:
            adapter_cls = step.adapter
            assert isinstance(adapter_cls, type)
            classes[adapter_cls.__name__] = adapter_cls
    return list(classes.values())


@pytest.mark.parametrize("adapter_cls", _adapter_classes(), ids=lambda cls: cls.__name__)
def test_every_pipeline_adapter_has_renderable_templates(adapter_cls: type[BaseAgent[Any, Any]]) -> None:
    adapter = adapter_cls(model_override=TestModel())

    assert adapter.user_template.strip()
    assert template_variables(adapter.user_template)
    assert "{{" not in adapter.system_prompt
