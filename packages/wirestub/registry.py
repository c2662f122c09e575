"""Process-wide stub registry for wirestub.

The registry holds at most one active :class:`StubSpec` and at most one
active request observer. Transports read from it; only test setup and
teardown write to it. It is deliberately not locked: two tests must never
run concurrently against the same registry.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Protocol

from .models import MetaLike, Request, StubSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Observer capability
# ---------------------------------------------------------------------------


class RequestObserver(Protocol):
    """Receives every intercepted request instead of a stubbed response."""

    def __call__(self, request: Request) -> Any:  # pragma: no cover - interface
        ...


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class StubRegistry:
    """Single source of truth for what an intercepted request resolves to."""

    def __init__(self) -> None:
        self._stub: Optional[StubSpec] = None
        self._observer: Optional[RequestObserver] = None
        self._active = False
        self._restore_clients: Optional[Callable[[], None]] = None

    @property
    def is_intercepting(self) -> bool:
        return self._active

    # Lifecycle -------------------------------------------------------------

    def start_intercepting(self, *, patch_clients: bool = True) -> None:
        """Activate interception.

        Calling this twice without :meth:`stop_intercepting` in between is a
        usage error; the second call only logs a warning.
        """

        if self._active:
            logger.warning("start_intercepting called while already intercepting")
            return

        self._active = True
        if patch_clients:
            from .http_proxy import install_client_patches

            self._restore_clients = install_client_patches(self)
        logger.info("Interception started")

    def stop_intercepting(self) -> None:
        """Deactivate interception and clear the stub and the observer.

        Safe to call any number of times.
        """

        restore, self._restore_clients = self._restore_clients, None
        try:
            if restore is not None:
                restore()
        finally:
            was_active = self._active
            self._active = False
            self.reset()
        if was_active:
            logger.info("Interception stopped")

    def reset(self) -> None:
        """Forget the stub and the observer; interception stays as it is."""

        self._stub = None
        self._observer = None

    # Configuration ---------------------------------------------------------

    def set_stub(
        self,
        spec: Optional[StubSpec] = None,
        *,
        body: Optional[bytes] = None,
        response_meta: Optional[MetaLike] = None,
        error: Optional[BaseException] = None,
    ) -> StubSpec:
        """Replace the active stub.

        Pass either a ready ``spec`` or its fields as keyword arguments. The
        previous stub is overwritten, never queued.
        """

        if spec is None:
            spec = StubSpec(body=body, response_meta=response_meta, error=error)
        elif body is not None or response_meta is not None or error is not None:
            raise TypeError("pass either a StubSpec or its fields, not both")
        self._stub = spec
        logger.debug(f"Stub set: {spec!r}")
        return spec

    def observe_requests(self, observer: RequestObserver) -> None:
        """Replace the active observer.

        While an observer is set, intercepted requests are handed to it and
        the stub is ignored.
        """

        self._observer = observer
        logger.debug(f"Observer set: {observer!r}")

    # Accessors used by transports ------------------------------------------

    def current_stub(self) -> Optional[StubSpec]:
        return self._stub

    def current_observer(self) -> Optional[RequestObserver]:
        return self._observer


@contextmanager
def intercepting(
    registry: Optional[StubRegistry] = None, *, patch_clients: bool = True
) -> Iterator[StubRegistry]:
    """Intercept inside the managed block and always clean up afterwards."""

    registry = registry if registry is not None else GLOBAL_REGISTRY
    registry.start_intercepting(patch_clients=patch_clients)
    try:
        yield registry
    finally:
        registry.stop_intercepting()


# Global registry instance used when no registry is passed explicitly.
GLOBAL_REGISTRY = StubRegistry()
