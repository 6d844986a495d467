"""Structured event logger used across the protocol engine.

Every call names an event as ``(domain, action)``; the human text comes from
the JSON template catalog. Two reserved keyword arguments build the line
prefix: ``nick`` (whose session logged it) and ``target`` (channel or user
it concerns). In DEBUG mode the remaining keyword arguments are appended as
``key=value`` context.
"""

from __future__ import annotations

import logging
import os
import sys

import colorlog

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}

# Context keys whose values never reach the log
SECRET_KEYS = frozenset({"password", "payload", "credentials"})

EVENT_COLUMN_WIDTH = 32
PREFIX_WIDTH = 24


def _debug_env_enabled() -> bool:
    return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")


def build_console_formatter() -> logging.Formatter:
    """Fixed-width level column followed by the message."""
    return colorlog.ColoredFormatter(
        "%(log_color)s%(levelname)-8s%(reset)s %(message)s",
        log_colors=LOG_COLORS,
        reset=True,
        stream=sys.stdout,
    )


def render_template(domain: str, action: str, context: dict[str, object]) -> tuple[str, bool]:
    """Return ``(text, derived)`` for an event.

    A template whose placeholders are not all supplied is returned unformatted.
    Events missing from the catalog get ``"domain: action"`` and ``derived``.
    """
    # Imported lazily: the catalog module must stay importable on its own.
    from .event_catalog import EVENT_TEMPLATES

    template = EVENT_TEMPLATES.get((domain, action))
    if not template:
        return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}", True
    try:
        return template.format(**context), False
    except (KeyError, IndexError, ValueError):
        return template, False


def format_prefix(nick: str | None, target: str | None) -> str:
    core = f"{nick or 'client'}>{target}" if target else nick or "client"
    return f"[{core.ljust(PREFIX_WIDTH)[:PREFIX_WIDTH]}]"


def format_event_name(event_name: str) -> str:
    if len(event_name) <= EVENT_COLUMN_WIDTH:
        return event_name.ljust(EVENT_COLUMN_WIDTH)
    return event_name[: EVENT_COLUMN_WIDTH - 1] + "~"


class IrcLogger:
    def __init__(self, name: str = "ircwire") -> None:
        self.logger = logging.getLogger(name)
        self.logger.handlers.clear()
        self.logger.setLevel(logging.DEBUG if _debug_env_enabled() else logging.INFO)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(build_console_formatter())
        self.logger.addHandler(console_handler)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        """Log the event ``{domain}_{action}``.

        ``human`` overrides the catalog text. Events without a template are
        flagged with ``derived=True`` in the context.
        """
        if not self.logger.isEnabledFor(level):
            return
        if human is None:
            human, derived = render_template(domain, action, kwargs)
            if derived:
                kwargs.setdefault("derived", True)
        nick = kwargs.pop("nick", None)
        target = kwargs.pop("target", None)
        prefix = format_prefix(
            nick if isinstance(nick, str) else None,
            target if isinstance(target, str) else None,
        )
        event_name = f"{domain}_{action}".lower()
        if _debug_env_enabled():
            msg = self._debug_line(event_name, prefix, human, kwargs)
        else:
            msg = f"{prefix} {human or event_name}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def _debug_line(
        event_name: str, prefix: str, human: str | None, context: dict[str, object]
    ) -> str:
        line = f"{format_event_name(event_name)} {prefix}"
        if human:
            line = f"{line} {human}"
        shown = ", ".join(
            f"{k}={'****' if k in SECRET_KEYS else v}" for k, v in context.items()
        )
        return f"{line} ({shown})" if shown else line


logger = IrcLogger()
