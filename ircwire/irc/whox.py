"""WHO / WHOX reply decoding."""

from __future__ import annotations

from enum import IntFlag

from ..errors import ProtocolFormatError
from .models import ExtendedWho


class WhoxField(IntFlag):
    """Fields a WHOX query can ask for, in the order the server replies."""

    NONE = 0
    QUERY_TYPE = 1 << 0
    CHANNEL = 1 << 1
    USERNAME = 1 << 2
    USER_IP = 1 << 3
    HOSTNAME = 1 << 4
    SERVER_NAME = 1 << 5
    NICK = 1 << 6
    FLAGS = 1 << 7
    HOPS = 1 << 8
    TIME_IDLE = 1 << 9
    ACCOUNT_NAME = 1 << 10
    OP_LEVEL = 1 << 11
    REAL_NAME = 1 << 12

    def as_string(self) -> str:
        return "".join(letter for member, letter in _FIELD_LETTERS if member & self)


# Canonical reply order; the letter is the WHOX request character.
_FIELD_LETTERS: tuple[tuple[WhoxField, str], ...] = (
    (WhoxField.QUERY_TYPE, "t"),
    (WhoxField.CHANNEL, "c"),
    (WhoxField.USERNAME, "u"),
    (WhoxField.USER_IP, "i"),
    (WhoxField.HOSTNAME, "h"),
    (WhoxField.SERVER_NAME, "s"),
    (WhoxField.NICK, "n"),
    (WhoxField.FLAGS, "f"),
    (WhoxField.HOPS, "d"),
    (WhoxField.TIME_IDLE, "l"),
    (WhoxField.ACCOUNT_NAME, "a"),
    (WhoxField.OP_LEVEL, "o"),
    (WhoxField.REAL_NAME, "r"),
)


class WhoxFlag(IntFlag):
    """WHO matching flags sent before the ``%`` field list."""

    NONE = 0
    OPERATORS_ONLY = 1 << 0

    def as_string(self) -> str:
        return "o" if self & WhoxFlag.OPERATORS_ONLY else ""


def build_whox_query(target: str, flags: WhoxFlag, fields: WhoxField, query_type: int) -> str:
    """``WHO <target> <flags>%<fields>,<querytype>``."""
    return f"WHO {target} {flags.as_string()}%{fields.as_string()},{query_type}"


def _to_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ProtocolFormatError(f"WHOX {name} field is not numeric: {value!r}") from e


def _assign(record: ExtendedWho, member: WhoxField, value: str) -> None:
    if member is WhoxField.QUERY_TYPE:
        record.query_type = _to_int(value, "query type")
    elif member is WhoxField.CHANNEL:
        record.channel = value
    elif member is WhoxField.USERNAME:
        record.user.user = value
    elif member is WhoxField.USER_IP:
        record.ip = value
    elif member is WhoxField.HOSTNAME:
        record.user.hostname = value
    elif member is WhoxField.SERVER_NAME:
        record.server = value
    elif member is WhoxField.NICK:
        record.user.nick = value
    elif member is WhoxField.FLAGS:
        record.flags = value
    elif member is WhoxField.HOPS:
        record.hops = _to_int(value, "hops")
    elif member is WhoxField.TIME_IDLE:
        record.time_idle = _to_int(value, "idle time")
    elif member is WhoxField.ACCOUNT_NAME:
        record.user.account = value
    elif member is WhoxField.OP_LEVEL:
        record.op_level = value
    elif member is WhoxField.REAL_NAME:
        record.user.real_name = value


def decode_whox(fields: WhoxField, params: list[str]) -> ExtendedWho:
    """Decode a RPL_WHOSPCRPL (354) parameter list.

    ``params[0]`` is the recipient nick; requested fields follow in canonical
    order starting at index 1. The pass over the field mask repeats while the
    cursor sits before the second-to-last parameter, so the real name (which
    may contain spaces) is always the final field consumed.

    Raises:
        ProtocolFormatError: If a numeric field is not numeric or the reply is
            shorter than the mask requires.
    """
    record = ExtendedWho()
    cursor = 1
    while True:
        start = cursor
        for member, _letter in _FIELD_LETTERS:
            if not fields & member:
                continue
            if cursor >= len(params):
                if start > 1:
                    # Leftover parameters from a repeated pass; keep what we have.
                    return record
                raise ProtocolFormatError(
                    "WHOX reply is shorter than the requested fields",
                    data={"fields": int(fields), "params": list(params)},
                )
            _assign(record, member, params[cursor])
            cursor += 1
        if cursor == start or cursor >= len(params) - 1:
            break
    return record


def decode_who(params: list[str]) -> ExtendedWho:
    """Decode a standard RPL_WHOREPLY (352).

    Layout: ``<me> <channel> <user> <host> <server> <nick> <flags> :<hops> <real name>``.
    """
    if len(params) < 8:
        raise ProtocolFormatError(
            "WHO reply has too few parameters", data={"params": list(params)}
        )
    record = ExtendedWho(
        channel=params[1],
        server=params[4],
        flags=params[6],
    )
    record.user.user = params[2]
    record.user.hostname = params[3]
    record.user.nick = params[5]
    # The hop count rides in front of the real name in the trailing parameter.
    hops, _, real_name = params[7].partition(" ")
    record.hops = _to_int(hops, "hops")
    record.user.real_name = real_name
    return record
