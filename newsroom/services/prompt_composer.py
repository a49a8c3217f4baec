"""Render step prompt templates from named variables."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


@dataclass(frozen=True)
class ComposedPrompts:
    """Rendered prompts for one adapter call."""

    system: str
    user: str
    assistant: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {"system": self.system, "user": self.user, "assistant": self.assistant}


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return "\n".join(_stringify(item) for item in value)
    return str(value)


def compose(template: str, variables: Mapping[str, Any] | None = None) -> str:
    """Substitute ``{{name}}`` placeholders.

    Unknown names render as an empty string. Substituted values are not
    re-scanned, so a value containing ``{{...}}`` is kept literally.
    """
    values = variables or {}

    def _replace(match: re.Match[str]) -> str:
        return _stringify(values.get(match.group(1)))

    return _PLACEHOLDER.sub(_replace, template)


def compose_prompts(
    *,
    system_template: str,
    user_template: str,
    assistant_template: str | None = None,
    system_variables: Mapping[str, Any] | None = None,
    user_variables: Mapping[str, Any] | None = None,
) -> ComposedPrompts:
    """Render the system, user and optional assistant templates of one step.

    The assistant template shares the user variables.
    """
    assistant = None
    if assistant_template:
        assistant = compose(assistant_template, user_variables)
    return ComposedPrompts(
        system=compose(system_template, system_variables),
        user=compose(user_template, user_variables),
        assistant=assistant,
    )


def template_variables(template: str) -> list[str]:
    """Placeholder names in first-appearance order."""
    seen: list[str] = []
    for name in _PLACEHOLDER.findall(template):
        if name not in seen:
            seen.append(name)
    return seen
