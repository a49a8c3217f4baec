"""Unit tests for settings helpers."""

from __future__ import annotations

from newsroom.config import Settings


def test_database_url_is_normalized_to_asyncpg() -> None:
    settings = Settings(database_url="postgres://user:pw@db:5432/newsroom")

    assert settings.database_url == "postgresql+asyncpg://user:pw@db:5432/newsroom"


def test_cors_origins_accept_comma_separated_values() -> None:
    settings = Settings(cors_origins="https://a.example, https://b.example")

    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_tier_timeouts_fall_back_to_standard() -> None:
    settings = Settings(llm_timeout_fast=30, llm_timeout_standard=90)

    assert settings.get_llm_timeout("fast") == 30.0
    assert settings.get_llm_timeout("unknown") == 90.0


def test_model_override_beats_environment_default() -> None:
    settings = Settings(environment="production", prod_model_fast="openai:gpt-4o-mini")

    assert settings.get_model("fast") == "openai:gpt-4o-mini"
    assert settings.get_model("reasoning") == Settings._MODEL_DEFAULTS["production"]["reasoning"]


def test_estimate_cost_uses_per_million_rates() -> None:
    settings = Settings(llm_input_cost_per_mtok=3.0, llm_output_cost_per_mtok=15.0)

    assert settings.estimate_cost_usd(1_000_000, 100_000) == 4.5
    assert settings.estimate_cost_usd(0, 0) == 0.0
