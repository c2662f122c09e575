"""Transports turn a :class:`Request` into delegate reports.

``InterceptingTransport`` resolves every request through a
:class:`StubRegistry` and never performs I/O. ``HTTPXTransport`` is the
production counterpart and talks to the network through ``httpx``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional, Protocol

import httpx

from .config import HarnessSettings
from .errors import TransportStateError
from .models import Request, ResponseMeta, StubSpec
from .outcome import TransportDelegate
from .registry import GLOBAL_REGISTRY, RequestObserver, StubRegistry

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def start_loading(
        self, request: Request, delegate: TransportDelegate
    ) -> None:  # pragma: no cover - interface
        """Load ``request`` and report to ``delegate``.

        Returns once ``delegate.on_finish()`` has been called.
        """
        ...


# ---------------------------------------------------------------------------
# Interception
# ---------------------------------------------------------------------------


class LoadState(str, Enum):
    STARTED = "started"
    OBSERVING = "observing"
    STUBBING = "stubbing"
    FINISHED = "finished"


class InterceptedLoad:
    """One intercepted request, from start to its single terminal signal."""

    def __init__(self, request: Request, delegate: TransportDelegate):
        self.request = request
        self.delegate = delegate
        self.state = LoadState.STARTED

    def _report(self, action: str, report: Callable[..., Any], *args: Any) -> None:
        if self.state is LoadState.FINISHED:
            raise TransportStateError(action)
        report(*args)

    def run(self, stub: Optional[StubSpec], observer: Optional[RequestObserver]) -> None:
        try:
            if observer is not None:
                self.state = LoadState.OBSERVING
                observer(self.request)
                return

            self.state = LoadState.STUBBING
            if stub is None:
                return
            if stub.body is not None:
                self._report("data", self.delegate.on_data, stub.body)
            if stub.response_meta is not None:
                self._report("response", self.delegate.on_response, stub.response_meta)
            if stub.error is not None:
                self._report("error", self.delegate.on_error, stub.error)
        finally:
            self.finish()

    def finish(self) -> None:
        self._report("finish", self.delegate.on_finish)
        self.state = LoadState.FINISHED


class InterceptingTransport:
    """Claims every request and answers it from the registry."""

    def __init__(
        self,
        registry: Optional[StubRegistry] = None,
        *,
        settings: Optional[HarnessSettings] = None,
    ):
        self.registry = registry if registry is not None else GLOBAL_REGISTRY
        self.settings = settings or HarnessSettings.from_env()

    def can_handle(self, request: Request) -> bool:
        return True

    def start_loading(self, request: Request, delegate: TransportDelegate) -> None:
        if not self.registry.is_intercepting:
            logger.warning(
                f"Intercepted {request.method} {request.url} while interception is inactive"
            )

        log = logger.info if self.settings.log_requests else logger.debug
        observer = self.registry.current_observer()
        stub = self.registry.current_stub()
        if observer is not None:
            log(f"Intercepted {request.method} {request.url} -> observer")
        else:
            log(f"Intercepted {request.method} {request.url} -> stub {stub!r}")

        InterceptedLoad(request, delegate).run(stub, observer)


# ---------------------------------------------------------------------------
# Production transport
# ---------------------------------------------------------------------------


class HTTPXTransport:
    """Performs real HTTP requests with an ``httpx.Client``."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        settings: Optional[HarnessSettings] = None,
    ):
        self.settings = settings or HarnessSettings.from_env()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.settings.request_timeout)

    def __enter__(self) -> "HTTPXTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def start_loading(self, request: Request, delegate: TransportDelegate) -> None:
        try:
            response = self._client.request(
                request.method,
                request.url,
                headers=request.header_dict(),
                content=request.body,
            )
        except Exception as e:
            logger.debug(f"{request.method} {request.url} failed: {e!r}")
            delegate.on_error(e)
        else:
            delegate.on_response(
                ResponseMeta(
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    url=str(response.url),
                )
            )
            delegate.on_data(response.content)
        delegate.on_finish()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
