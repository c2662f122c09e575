"""Transport outcomes and the delegate protocol transports report through."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Union

from .errors import TransportStateError


@dataclass(frozen=True)
class DataOutcome:
    """The transport finished without an error.

    ``body`` and ``meta`` are whatever was reported and may be missing.
    """

    body: Optional[bytes] = None
    meta: Any = None

    @property
    def is_empty(self) -> bool:
        return self.body is None and self.meta is None


@dataclass(frozen=True)
class FailureOutcome:
    error: BaseException


TransportOutcome = Union[DataOutcome, FailureOutcome]


class TransportDelegate(Protocol):
    """Receives the partial reports of one load, then a terminal signal."""

    def on_data(self, data: bytes) -> None:  # pragma: no cover - interface
        ...

    def on_response(self, meta: Any) -> None:  # pragma: no cover - interface
        ...

    def on_error(self, error: BaseException) -> None:  # pragma: no cover - interface
        ...

    def on_finish(self) -> None:  # pragma: no cover - interface
        ...


class OutcomeCollector:
    """A delegate that folds the reports of one load into an outcome."""

    def __init__(self) -> None:
        self._chunks: List[bytes] = []
        self._received_data = False
        self._meta: Any = None
        self._error: Optional[BaseException] = None
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def _guard(self, action: str) -> None:
        if self._finished:
            raise TransportStateError(action)

    def on_data(self, data: bytes) -> None:
        self._guard("data")
        self._received_data = True
        self._chunks.append(bytes(data))

    def on_response(self, meta: Any) -> None:
        self._guard("response")
        self._meta = meta

    def on_error(self, error: BaseException) -> None:
        self._guard("error")
        self._error = error

    def on_finish(self) -> None:
        self._guard("finish")
        self._finished = True

    def outcome(self) -> TransportOutcome:
        if not self._finished:
            raise TransportStateError("outcome", "The load has not finished yet.")
        if self._error is not None:
            return FailureOutcome(self._error)
        body = b"".join(self._chunks) if self._received_data else None
        return DataOutcome(body=body, meta=self._meta)
