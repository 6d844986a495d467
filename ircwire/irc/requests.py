"""Pending-operation registry correlating replies with the requests that caused them."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, NamedTuple

from ..errors import ConflictError, NotFoundError
from ..logs.logger import logger


class RequestKind(Enum):
    WHOIS = "WHOIS"
    WHO = "WHO"
    WHOX = "WHOX"
    MODE = "MODE"
    MODE_LIST = "MODE_LIST"


class RequestKey(NamedTuple):
    """Correlation key: what was asked, about whom, and which variant.

    ``discriminator`` is the WHOX query type or the list mode character;
    ``fields`` is the WHOX field mask.
    """

    kind: RequestKind
    target: str
    discriminator: int | str | None = None
    fields: int | None = None

    def normalized(self) -> tuple[RequestKind, str, int | str | None, int | None]:
        return self.kind, self.target.casefold(), self.discriminator, self.fields

    def __str__(self) -> str:
        parts = [self.kind.value, self.target]
        parts += [str(p) for p in (self.discriminator, self.fields) if p is not None]
        return " ".join(parts)


class OperationOutcome(Enum):
    PENDING = auto()
    COMPLETED = auto()
    CANCELLED = auto()


OperationCallback = Callable[["PendingOperation"], Any]


@dataclass
class PendingOperation:
    key: RequestKey
    state: Any
    callback: OperationCallback | None = None
    outcome: OperationOutcome = field(default=OperationOutcome.PENDING)

    @property
    def cancelled(self) -> bool:
        return self.outcome is OperationOutcome.CANCELLED

    def _fire(self, outcome: OperationOutcome) -> None:
        if self.outcome is not OperationOutcome.PENDING:
            return  # callbacks fire exactly once
        self.outcome = outcome
        if self.callback is not None:
            self.callback(self)

    def complete(self) -> None:
        self._fire(OperationOutcome.COMPLETED)

    def cancel(self) -> None:
        self._fire(OperationOutcome.CANCELLED)


class RequestManager:
    """Thread-safe map of correlation key -> pending operation.

    Requests are queued from caller code (any thread) and peeked/dequeued from
    the dispatch path. Key matching ignores the case of the target.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[RequestKey, PendingOperation] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def pending_operations(self) -> Mapping[RequestKey, PendingOperation]:
        """Read-only snapshot, safe to iterate while replies mutate the registry."""
        with self._lock:
            return MappingProxyType(dict(self._pending))

    def _find_key(self, key: RequestKey) -> RequestKey | None:
        if key in self._pending:
            return key
        wanted = key.normalized()
        for existing in self._pending:
            if existing.normalized() == wanted:
                return existing
        return None

    def queue_operation(
        self, key: RequestKey, state: Any, callback: OperationCallback | None = None
    ) -> PendingOperation:
        with self._lock:
            if self._find_key(key) is not None:
                raise ConflictError("Operation is already pending.", data={"key": str(key)})
            operation = PendingOperation(key=key, state=state, callback=callback)
            self._pending[key] = operation
        logger.log_event("request", "queued", level=logging.DEBUG, key=str(key))
        return operation

    def peek_operation(self, key: RequestKey) -> PendingOperation:
        with self._lock:
            real_key = self._find_key(key)
            if real_key is None:
                raise NotFoundError(f"No pending operation for {key}", data={"key": str(key)})
            return self._pending[real_key]

    def dequeue_operation(self, key: RequestKey) -> PendingOperation:
        with self._lock:
            real_key = self._find_key(key)
            if real_key is None:
                raise NotFoundError(f"No pending operation for {key}", data={"key": str(key)})
            operation = self._pending.pop(real_key)
        logger.log_event("request", "dequeued", level=logging.DEBUG, key=str(key))
        return operation

    def find(
        self,
        kind: RequestKind,
        target: str | None = None,
        predicate: Callable[[RequestKey], bool] | None = None,
    ) -> list[PendingOperation]:
        """Scan pending operations of ``kind`` (optionally for ``target``)."""
        wanted_target = target.casefold() if target is not None else None
        return [
            op
            for key, op in self.pending_operations.items()
            if key.kind is kind
            and (wanted_target is None or key.target.casefold() == wanted_target)
            and (predicate is None or predicate(key))
        ]

    def cancel_all(self) -> int:
        """Cancel every pending operation, firing callbacks with CANCELLED.

        Returns the number of operations cancelled. A raising callback does not
        stop the others from being cancelled.
        """
        with self._lock:
            operations = list(self._pending.values())
            self._pending.clear()
        for operation in operations:
            try:
                operation.cancel()
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "request",
                    "cancel_callback_error",
                    level=logging.ERROR,
                    key=str(operation.key),
                    error=str(e),
                    error_type=type(e).__name__,
                )
        if operations:
            logger.log_event(
                "request", "cancelled_all", level=logging.WARNING, count=len(operations)
            )
        return len(operations)
