"""Base class for step adapters built on Pydantic AI agents."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar, cast

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from newsroom.config import settings
from newsroom.core.exceptions import (
    AdapterError,
    AdapterTimeoutError,
    EmptyAdapterOutputError,
)
from newsroom.services.prompt_composer import ComposedPrompts, compose, compose_prompts

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


@dataclass(frozen=True)
class StepUsage:
    """Token usage reported for one adapter call."""

    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class AdapterResult(Generic[OutputT]):
    """Structured output plus usage for one adapter call."""

    output: OutputT
    usage: StepUsage
    prompts: ComposedPrompts
    duration_s: float = 0.0
    extra: dict[str, Any] = field(default_factory=dict)


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract step adapter wrapping one generative call.

    Each adapter should:
    1. Define system_template and user_template (``{{name}}`` placeholders)
    2. Define the output_type property
    3. Implement _build_variables to map typed input onto template variables
    4. Optionally set assistant_template and required_output_fields
    """

    # Model tier for environment-aware resolution (reasoning / standard / fast)
    model_tier: str = "standard"
    # Explicit model override at the class level (bypasses tier resolution)
    model: str | None = None
    temperature: float = 0.3
    max_tokens: int = 4000

    system_template: ClassVar[str]
    user_template: ClassVar[str]
    assistant_template: ClassVar[str | None] = None
    # Output fields that must be non-empty for the call to count as a success
    required_output_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, model_override: str | Model | None = None) -> None:
        """Initialize the adapter.

        Model resolution priority:
        1. model_override parameter (explicit runtime override)
        2. model class attribute (if set by subclass)
        3. settings.get_model(self.model_tier) (environment-aware tier fallback)
        """
        model_source = "tier_default"
        if model_override is not None:
            self._model: str | Model = model_override
            model_source = "runtime_override"
        elif self.model:
            self._model = self.model
            model_source = "class_override"
        else:
            self._model = settings.get_model(self.model_tier)
        self._agent: Agent[None, OutputT] | None = None

        logger.debug(
            "Adapter initialized",
            extra={
                "adapter": self.name,
                "model": self.model_name,
                "model_tier": self.model_tier,
                "model_source": model_source,
            },
        )

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def model_name(self) -> str:
        if isinstance(self._model, Model):
            return self._model.model_name
        return self._model

    @property
    def system_prompt(self) -> str:
        """System prompt rendered with the adapter's system variables."""
        return compose(self.system_template, self._system_variables()).strip()

    @property
    def agent(self) -> Agent[None, OutputT]:
        """Lazily initialize and return the Pydantic AI agent."""
        if self._agent is None:
            self._agent = cast(
                Agent[None, OutputT],
                Agent(
                    model=self._model,
                    output_type=self.output_type,
                    system_prompt=self.system_prompt,
                    retries=settings.llm_output_retries,
                ),
            )
        return self._agent

    @property
    @abstractmethod
    def output_type(self) -> type[OutputT]:
        """Pydantic model type for structured output."""
        pass

    @abstractmethod
    def _build_variables(self, input_data: InputT) -> dict[str, Any]:
        """Map input data onto user template variables."""
        pass

    def _system_variables(self) -> dict[str, Any]:
        return {}

    def build_prompts(self, input_data: InputT) -> ComposedPrompts:
        """Compose the prompts this adapter would send for ``input_data``.

        Rendered prompts are trimmed; the templates are triple-quoted blocks.
        """
        prompts = compose_prompts(
            system_template=self.system_template,
            user_template=self.user_template,
            assistant_template=self.assistant_template,
            system_variables=self._system_variables(),
            user_variables=self._build_variables(input_data),
        )
        return ComposedPrompts(
            system=prompts.system.strip(),
            user=prompts.user.strip(),
            assistant=prompts.assistant.strip() if prompts.assistant else None,
        )

    @staticmethod
    def _user_message(prompts: ComposedPrompts) -> str:
        if not prompts.assistant:
            return prompts.user
        return f"{prompts.user}\n\nBegin your response in this spirit:\n{prompts.assistant}"

    def _missing_output_fields(self, output: OutputT) -> list[str]:
        missing: list[str] = []
        for field_name in self.required_output_fields:
            value = getattr(output, field_name, None)
            if isinstance(value, str):
                value = value.strip()
            elif isinstance(value, list):
                value = [item for item in value if not isinstance(item, str) or item.strip()]
            if not value:
                missing.append(field_name)
        return missing

    async def run(self, input_data: InputT) -> AdapterResult[OutputT]:
        """Run one generative call.

        Raises:
            AdapterTimeoutError: provider did not answer within the tier timeout.
            EmptyAdapterOutputError: a required output field came back empty.
            AdapterError: any other provider or output-validation failure.
        """
        prompts = self.build_prompts(input_data)
        timeout_s = settings.get_llm_timeout(self.model_tier)
        log_context = {"adapter": self.name, "model": self.model_name}
        logger.info(
            "Adapter call started",
            extra={**log_context, "prompt_length": len(prompts.user), "timeout_s": timeout_s},
        )

        model_settings = ModelSettings(temperature=self.temperature, max_tokens=self.max_tokens)
        t0 = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                self.agent.run(self._user_message(prompts), model_settings=model_settings),
                timeout=timeout_s,
            )
            output = result.output
            run_usage = result.usage()
            usage = StepUsage(
                input_tokens=run_usage.input_tokens or 0,
                output_tokens=run_usage.output_tokens or 0,
                model=self.model_name,
            )
        except asyncio.TimeoutError as exc:
            raise AdapterTimeoutError(self.name, timeout_s) from exc
        except AgentRunError as exc:
            raise AdapterError(self.name, str(exc)) from exc
        except Exception as exc:
            raise AdapterError(self.name, f"{type(exc).__name__}: {exc}") from exc
        elapsed = time.perf_counter() - t0

        missing = self._missing_output_fields(output)
        if missing:
            raise EmptyAdapterOutputError(self.name, missing)

        logger.info(
            "Adapter call completed",
            extra={
                **log_context,
                "duration_s": round(elapsed, 2),
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
            },
        )
        return AdapterResult(output=output, usage=usage, prompts=prompts, duration_s=elapsed)
