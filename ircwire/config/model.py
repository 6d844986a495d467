from __future__ import annotations

import codecs
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import IRC_DEFAULT_PORT, IRC_ENCODING, IRC_PING_INTERVAL

DEFAULT_CAPABILITIES: tuple[str, ...] = (
    "server-time",
    "multi-prefix",
    "cap-notify",
    "znc.in/server-time",
    "znc.in/server-time-iso",
    "account-notify",
    "chghost",
    "userhost-in-names",
    "sasl",
)


def split_server_address(address: str) -> tuple[str, int]:
    """Split ``"host[:port]"`` into its parts.

    Raises:
        ValueError: If the address has more than one colon or a bad port.
    """
    parts = address.split(":")
    if len(parts) > 2 or not parts[0]:
        raise ValueError("server address is not in correct format ('hostname:port')")
    if len(parts) == 1:
        return parts[0], IRC_DEFAULT_PORT
    port = int(parts[1])
    if not 0 < port < 65536:
        raise ValueError(f"port out of range: {port}")
    return parts[0], port


class ClientSettings(BaseModel):
    """Settings for a single IRC client connection.

    Attributes:
        server: Server address in the form ``hostname[:port]``.
        nick: Nick to register with.
        user: Username (ident) sent in USER; defaults to the nick.
        real_name: Real name sent in USER; defaults to the user.
        password: Server password (PASS) and SASL PLAIN password.
        sasl_username: Account used for SASL PLAIN; defaults to the nick.
        use_tls: Wrap the connection in TLS before the first line.
        ignore_invalid_tls: Accept any server certificate.
        encoding: Wire encoding.
        whois_on_connect: WHOIS ourselves after the MOTD to reconcile identity.
        generate_random_nick_if_in_use: Retry with a random nick on 433.
        privmsg_prefix: Text prepended to every PRIVMSG/NOTICE body.
        capabilities: Capabilities the client knows how to speak.
        ping_interval: Keepalive period in seconds.
    """

    server: str = Field(min_length=1)
    nick: str = Field(min_length=1)
    user: str | None = None
    real_name: str | None = None
    password: str | None = None
    sasl_username: str | None = None
    use_tls: bool = False
    ignore_invalid_tls: bool = False
    encoding: str = IRC_ENCODING
    whois_on_connect: bool = True
    generate_random_nick_if_in_use: bool = True
    privmsg_prefix: str = ""
    capabilities: list[str] = Field(default_factory=lambda: list(DEFAULT_CAPABILITIES))
    ping_interval: float = Field(default=IRC_PING_INTERVAL, gt=0)

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        v = v.strip()
        split_server_address(v)
        return v

    @field_validator("nick", "user")
    @classmethod
    def validate_token(cls, v: str | None) -> str | None:
        """Nick and user go out as middle parameters: no spaces, no leading colon."""
        if v is None:
            return v
        if " " in v or v.startswith(":") or any(c in v for c in "\r\n\0"):
            raise ValueError(f"invalid IRC token: {v!r}")
        return v

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {v}") from e
        return v

    @field_validator("capabilities", mode="before")
    @classmethod
    def validate_capabilities(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            raise ValueError("capabilities must be a list")
        # Dedup keeping order
        return list(dict.fromkeys(c.strip() for c in v if isinstance(c, str) and c.strip()))

    @model_validator(mode="after")
    def fill_identity(self) -> ClientSettings:
        if not self.user:
            self.user = self.nick
        if not self.real_name:
            self.real_name = self.user
        return self

    @property
    def host(self) -> str:
        return split_server_address(self.server)[0]

    @property
    def port(self) -> int:
        return split_server_address(self.server)[1]

    @property
    def sasl_credentials(self) -> tuple[str, str] | None:
        """``(account, password)`` when SASL PLAIN is possible, else None."""
        if not self.password:
            return None
        return self.sasl_username or self.nick, self.password

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientSettings:
        norm_data = dict(data)
        if "nick" in norm_data:
            norm_data["nick"] = str(norm_data["nick"]).strip()
        return cls.model_validate(norm_data)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
