"""Event template catalog: ``(domain, action) -> text`` loaded from JSON."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def flatten_templates(raw: Any) -> dict[tuple[str, str], str]:
    """Turn ``{"domain": {"action": "text"}}`` into a flat lookup table.

    Non-string keys or values are skipped.
    """
    flat: dict[tuple[str, str], str] = {}
    if not isinstance(raw, Mapping):
        return flat
    for domain, actions in raw.items():
        if not isinstance(domain, str) or not isinstance(actions, Mapping):
            continue
        flat.update(
            ((domain, action), text)
            for action, text in actions.items()
            if isinstance(action, str) and isinstance(text, str)
        )
    return flat


def load_event_templates(path: Path = TEMPLATES_PATH) -> dict[tuple[str, str], str]:
    # A broken catalog must not stop the client; logging falls back to derived text.
    try:
        return flatten_templates(json.loads(path.read_text(encoding="utf-8")))
    except FileNotFoundError:
        return {("app", "load_error"): f"Event templates file missing: {path.name}"}
    except (OSError, ValueError) as e:
        return {("app", "load_error"): f"Failed to load event templates: {e}"[:200]}


def reload_event_templates(path: Path = TEMPLATES_PATH) -> None:
    global EVENT_TEMPLATES  # noqa: PLW0603
    EVENT_TEMPLATES = load_event_templates(path)


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "load_event_templates", "reload_event_templates"]
