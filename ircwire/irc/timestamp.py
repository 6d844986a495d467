"""Server-time tag values (``time`` ISO-8601 and legacy ``t`` epoch)."""

from __future__ import annotations

import math
from datetime import UTC, datetime

from ..errors import ProtocolFormatError

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class Timestamp:
    """A message timestamp received from a server.

    ``compatibility`` selects the pre-ZNC 1.0 form of the tag, where servers
    sent a unix timestamp instead of an ISO 8601 string.
    """

    __slots__ = ("date", "unix_timestamp")

    def __init__(self, value: str | None, compatibility: bool = False) -> None:
        if value is None:
            raise ProtocolFormatError("timestamp tag has no value")
        if compatibility:
            try:
                unix = float(value)
            except ValueError as e:
                raise ProtocolFormatError(
                    f"The timestamp string was provided in an invalid format: {value!r}"
                ) from e
            if not math.isfinite(unix):
                raise ProtocolFormatError(f"timestamp out of range: {value!r}")
            try:
                self.date = datetime.fromtimestamp(unix, tz=UTC)
            except (OverflowError, OSError, ValueError) as e:
                raise ProtocolFormatError(f"timestamp out of range: {value!r}") from e
            self.unix_timestamp = unix
        else:
            self.date = self._parse_iso(value)
            self.unix_timestamp = (self.date - _EPOCH).total_seconds()

    @staticmethod
    def _parse_iso(value: str) -> datetime:
        # datetime rejects second=60, which is the strict behaviour we want.
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as e:
            raise ProtocolFormatError(
                f"The date string was provided in an invalid format: {value!r}"
            ) from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)

    def to_iso_string(self) -> str:
        return self.date.strftime("%Y-%m-%dT%H:%M:%S.") + f"{self.date.microsecond // 1000:03d}Z"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return int(self.unix_timestamp) == int(other.unix_timestamp)

    def __hash__(self) -> int:
        return hash(int(self.unix_timestamp))

    def __repr__(self) -> str:
        return f"Timestamp({self.to_iso_string()!r})"
