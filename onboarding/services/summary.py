from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from onboarding.constants.fields import SCHOOL_SETUP_FIELDS
from onboarding.services.attachments import Attachment
from onboarding.services.steps import StepInferenceEngine


def format_stepper(engine: StepInferenceEngine, snapshot: Mapping[str, Any]) -> str:
    """
    Полоса шагов, как в веб-версии:
      ✅ Email  ✅ Number  ▶️ Address  ▫️ Prefix  ▫️ Logo
    Финальный шаг без подписи не выводится.
    """
    current = engine.current_step(snapshot)
    items: list[str] = []
    for step in engine.steps:
        if not step.label:
            continue
        if step.rank < current:
            mark = "✅"
        elif step.rank == current:
            mark = "▶️"
        else:
            mark = "▫️"
        items.append(f"{mark} {step.label}")
    return "  ".join(items)


def _value_text(value: Any) -> str:
    if isinstance(value, Attachment):
        return f"{value.file_name} ({value.display_size})"
    if isinstance(value, str) and value:
        return value
    return "—"


def format_review(snapshot: Mapping[str, Any]) -> str:
    lines = ["<b>Check your school details</b>", ""]
    for field in SCHOOL_SETUP_FIELDS:
        lines.append(f"<b>{field.title}:</b> {_value_text(snapshot.get(field.name))}")
    lines.append("")
    lines.append("If everything is correct, press «Create Account».")
    return "\n".join(lines)


def format_field_errors(field_errors: Mapping[str, str]) -> str:
    titles = {f.name: f.title for f in SCHOOL_SETUP_FIELDS}
    lines = ["⚠️ Some fields need attention:"]
    for name, message in field_errors.items():
        lines.append(f"- {titles.get(name, name)}: {message}")
    return "\n".join(lines)

