"""IRC message parsing and formatting."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import ArgumentError, ProtocolFormatError
from .tags import escape_tag_value, unescape_tag_value
from .timestamp import Timestamp


@dataclass
class IRCMessage:
    """A single protocol line.

    ``command`` is upper-cased by :func:`parse_irc_message`; a message built
    in code keeps the command as given. Tag values are ``None`` when the tag
    carried no ``=`` at all, which is distinct from an empty value.
    """

    command: str
    params: list[str] = field(default_factory=list)
    source: str | None = None
    tags: dict[str, str | None] = field(default_factory=dict)
    raw: str | None = field(default=None, compare=False, repr=False)
    timestamp: Timestamp | None = field(default=None, init=False, compare=False)

    def __post_init__(self) -> None:
        self.timestamp = _timestamp_from_tags(self.tags)

    @classmethod
    def parse(cls, line: str) -> IRCMessage:
        return parse_irc_message(line)

    def format(self) -> str:
        return format_irc_message(self)

    @property
    def nick(self) -> str | None:
        """Nick part of the source hostmask, if any."""
        if not self.source:
            return None
        return self.source.split("!", 1)[0].split("@", 1)[0]

    def param(self, index: int, default: str | None = None) -> str | None:
        try:
            return self.params[index]
        except IndexError:
            return default

    def __str__(self) -> str:
        return self.format()


def _timestamp_from_tags(tags: dict[str, str | None]) -> Timestamp | None:
    # znc.in/server-time (legacy epoch) wins over server-time when both exist.
    if "t" in tags:
        return Timestamp(tags["t"], compatibility=True)
    if "time" in tags:
        return Timestamp(tags["time"])
    return None


def _parse_tags(raw_tags: str) -> dict[str, str | None]:
    tags: dict[str, str | None] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            k, v = tag.split("=", 1)
            tags[k] = unescape_tag_value(v)
        else:
            tags[tag] = None
    return tags


def parse_irc_message(raw_line: str) -> IRCMessage:
    """Parse a raw line (without CRLF) into an :class:`IRCMessage`.

    Raises:
        ProtocolFormatError: If the line is blank, has no command, or carries
            an unparseable timestamp tag.
    """
    if not raw_line or raw_line.isspace():
        raise ProtocolFormatError("cannot parse an empty line")

    line = raw_line
    tags: dict[str, str | None] = {}
    if line.startswith("@"):
        tags_part, _, line = line.partition(" ")
        tags = _parse_tags(tags_part[1:])

    trailing: str | None = None
    if " :" in line:
        line, trailing = line.split(" :", 1)

    parts = line.split()
    source: str | None = None
    if parts and parts[0].startswith(":"):
        source = parts.pop(0)[1:]
    if not parts:
        raise ProtocolFormatError(f"line has no command: {raw_line!r}")
    command = parts.pop(0).upper()

    params = parts
    if trailing is not None:
        params.append(trailing)

    msg = IRCMessage(command=command, params=params, source=source, tags=tags, raw=raw_line)
    return msg


def _format_tags(tags: dict[str, str | None]) -> str:
    atoms = []
    for key in sorted(tags):
        value = tags[key]
        atoms.append(key if value is None else f"{key}={escape_tag_value(value)}")
    return "@" + ";".join(atoms)


def format_irc_message(message: IRCMessage) -> str:
    """Serialize a message into a wire-correct line (without CRLF).

    Raises:
        ArgumentError: If a non-last parameter contains a space or starts
            with a colon.
    """
    outs: list[str] = []
    if message.tags:
        outs.append(_format_tags(message.tags))
    if message.source is not None:
        outs.append(f":{message.source}")
    outs.append(message.command)

    if message.params:
        *middle, last = message.params
        for p in middle:
            if " " in p:
                raise ArgumentError(
                    "non-last parameters cannot have spaces", data={"param": p}
                )
            if p.startswith(":"):
                raise ArgumentError(
                    "non-last parameters cannot start with colon", data={"param": p}
                )
            if not p:
                raise ArgumentError("non-last parameters cannot be empty")
        outs.extend(middle)
        if not last or " " in last or last.startswith(":"):
            last = f":{last}"
        outs.append(last)
    return " ".join(outs)


@dataclass
class PrivMsg:
    author: str
    target: str
    message: str
    tags: dict[str, str | None]
    is_channel: bool
    is_action: bool = False


CHANNEL_PREFIXES = "#&!+"


def build_privmsg(parsed: IRCMessage) -> PrivMsg | None:
    if parsed.command != "PRIVMSG":
        return None
    if len(parsed.params) < 2:
        return None
    target, message = parsed.params[0], parsed.params[-1]
    is_action = message.startswith("\x01ACTION ") and message.endswith("\x01")
    if is_action:
        message = message[len("\x01ACTION ") : -1]
    return PrivMsg(
        author=parsed.nick or "?",
        target=target,
        message=message,
        tags=parsed.tags,
        is_channel=target[:1] in CHANNEL_PREFIXES,
        is_action=is_action,
    )
