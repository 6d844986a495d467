"""
Configuration constants for the ircwire protocol engine

This module contains the tunables used by the connection pipeline and the
negotiation/correlation layers. Each constant can be overridden by setting an
environment variable with the same name.
"""

import os


def _get_env_number(name, default, cast):
    """Read ``name`` from the environment and convert it with ``cast``.

    Unset variables give ``default``. Unparseable or negative values print a
    warning and give ``default`` as well.
    """
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = cast(value)
    except ValueError:
        print(f"Warning: Invalid {cast.__name__} value for {name}='{value}', using default {default}")
        return default
    if parsed < 0:
        print(f"Warning: Negative value for {name}='{value}', using default {default}")
        return default
    return parsed


def _get_env_int(name: str, default: int) -> int:
    return _get_env_number(name, default, int)


def _get_env_float(name: str, default: float) -> float:
    return _get_env_number(name, default, float)


# Transport
IRC_DEFAULT_PORT = _get_env_int("IRC_DEFAULT_PORT", 6667)
IRC_CONNECT_TIMEOUT = _get_env_float(
    "IRC_CONNECT_TIMEOUT", 30.0
)  # Seconds allowed for TCP (+TLS) handshake
IRC_ENCODING = os.getenv("IRC_ENCODING", "utf-8")

# Read buffer capacity in bytes; a single line (tags included) must fit
IRC_READ_BUFFER_LENGTH = _get_env_int("IRC_READ_BUFFER_LENGTH", 16384)

# Timers
IRC_PING_INTERVAL = _get_env_float(
    "IRC_PING_INTERVAL", 30.0
)  # Keepalive PING period (only sent once the server name is known)
IRC_QUEUE_POLL_INTERVAL = _get_env_float(
    "IRC_QUEUE_POLL_INTERVAL", 1.0
)  # Write queue drain poll period

# Negotiation
IRC_CAP_LS_VERSION = os.getenv("IRC_CAP_LS_VERSION", "302")
IRC_SASL_CHUNK_SIZE = _get_env_int(
    "IRC_SASL_CHUNK_SIZE", 400
)  # Max base64 bytes per AUTHENTICATE line

# Correlation
IRC_WHOX_QUERY_TYPE_MAX = _get_env_int(
    "IRC_WHOX_QUERY_TYPE_MAX", 999
)  # Upper bound (exclusive) for random WHOX query-type discriminators

# Nick fallback
IRC_RANDOM_NICK_LENGTH = _get_env_int("IRC_RANDOM_NICK_LENGTH", 8)
