"""Capability pool: what we can speak and what the server enabled."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from ..errors import NotFoundError


@dataclass
class Capability:
    name: str
    enabled: bool = False
    value: str | None = None  # e.g. "PLAIN,EXTERNAL" for sasl under CAP 302


class CapabilityPool:
    """Known capabilities, looked up by exact (case-sensitive) name."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._caps: list[Capability] = []
        self.add_range(names)

    def __iter__(self) -> Iterator[Capability]:
        return iter(list(self._caps))

    def __len__(self) -> int:
        return len(self._caps)

    def __contains__(self, name: object) -> bool:
        return any(cap.name == name for cap in self._caps)

    def __getitem__(self, name: str) -> Capability:
        for cap in self._caps:
            if cap.name == name:
                return cap
        raise NotFoundError(f"unknown capability: {name}")

    @property
    def names(self) -> list[str]:
        return [cap.name for cap in self._caps]

    @property
    def enabled(self) -> list[str]:
        return [cap.name for cap in self._caps if cap.enabled]

    @property
    def disabled(self) -> list[str]:
        return [cap.name for cap in self._caps if not cap.enabled]

    def add(self, name: str) -> None:
        if name in self:
            return
        self._caps.append(Capability(name))

    def add_range(self, names: Iterable[str]) -> None:
        for name in names:
            self.add(name)

    def remove(self, name: str) -> None:
        self._caps.remove(self[name])

    def enable(self, name: str) -> None:
        self[name].enabled = True

    def disable(self, name: str) -> None:
        self[name].enabled = False

    def is_enabled(self, name: str) -> bool:
        return any(cap.name == name and cap.enabled for cap in self._caps)

    def get_or_add(self, name: str) -> Capability:
        self.add(name)
        return self[name]

    def reset(self) -> None:
        """Forget what the server enabled (new connection)."""
        for cap in self._caps:
            cap.enabled = False
            cap.value = None
