"""Structured event logging: the IrcLogger and its JSON template catalog."""

from .event_catalog import load_event_templates, reload_event_templates  # noqa: F401
from .logger import IrcLogger, logger  # noqa: F401

__all__ = ["IrcLogger", "logger", "load_event_templates", "reload_event_templates"]
