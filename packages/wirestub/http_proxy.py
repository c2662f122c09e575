"""Claim every ``requests`` and ``httpx`` call made in the process.

While installed, the patched ``send`` methods never reach the network: each
outgoing request is resolved through :class:`InterceptingTransport`, and the
outcome is turned back into the native response object of the library, or
raised.

The patches are installed once for any number of active registries. Requests
go to the most recently activated registry that is still active, and the
original ``send`` methods come back when the last one is released.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Tuple

import httpx
import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from .client import Failure, result_from_outcome
from .models import Request, ResponseMeta
from .outcome import OutcomeCollector, TransportOutcome
from .registry import GLOBAL_REGISTRY, StubRegistry
from .transport import InterceptingTransport

logger = logging.getLogger(__name__)

RegistryLookup = Callable[[], StubRegistry]

# Registries that currently own the client patches, oldest first.
_active_registries: List[StubRegistry] = []
_restore_originals: Optional[Callable[[], None]] = None


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------


def resolve(registry: StubRegistry, request: Request) -> TransportOutcome:
    collector = OutcomeCollector()
    InterceptingTransport(registry).start_loading(request, collector)
    return collector.outcome()


def _response_parts(outcome: TransportOutcome) -> Tuple[bytes, ResponseMeta]:
    result = result_from_outcome(outcome)
    if isinstance(result, Failure):
        raise result.error
    return result.body, result.meta


def current_registry() -> StubRegistry:
    """The registry patched clients currently resolve through."""

    return _active_registries[-1] if _active_registries else GLOBAL_REGISTRY


def _lookup(registry: Optional[StubRegistry]) -> RegistryLookup:
    if registry is None:
        return current_registry
    return lambda: registry


# ---------------------------------------------------------------------------
# requests patching
# ---------------------------------------------------------------------------


def request_from_requests(prepared: requests.PreparedRequest) -> Request:
    body = prepared.body
    if isinstance(body, str):
        body = body.encode("utf-8")
    elif not isinstance(body, (bytes, bytearray)):
        body = None
    return Request(
        method=prepared.method or "GET",
        url=prepared.url or "",
        headers=dict(prepared.headers),
        body=body,
    )


def _requests_response(
    prepared: requests.PreparedRequest, body: bytes, meta: ResponseMeta
) -> requests.Response:
    response = requests.Response()
    response.status_code = meta.status_code
    response.headers = CaseInsensitiveDict(meta.headers)
    response.encoding = get_encoding_from_headers(response.headers)
    response.url = meta.url or prepared.url or ""
    response.request = prepared
    response._content = body
    response._content_consumed = True
    return response


def patch_requests(*, registry: Optional[StubRegistry] = None) -> Callable[[], None]:
    """Patch ``requests.Session.send``.

    Without ``registry`` every request resolves through
    :func:`current_registry`.
    """

    lookup = _lookup(registry)
    session_cls = requests.Session
    original_send = session_cls.send

    def patched_send(self, request, **kwargs):
        outcome = resolve(lookup(), request_from_requests(request))
        body, meta = _response_parts(outcome)
        return _requests_response(request, body, meta)

    session_cls.send = patched_send  # type: ignore[assignment]

    def restore():
        if session_cls.send is not patched_send:
            logger.warning("requests.Session.send was replaced by someone else; not restoring")
            return
        session_cls.send = original_send

    return restore


# ---------------------------------------------------------------------------
# httpx patching
# ---------------------------------------------------------------------------


def request_from_httpx(request: httpx.Request) -> Request:
    return Request(
        method=request.method,
        url=str(request.url),
        headers=dict(request.headers),
        body=request.content or None,
    )


def _httpx_response(request: httpx.Request, outcome: TransportOutcome) -> httpx.Response:
    body, meta = _response_parts(outcome)
    return httpx.Response(
        status_code=meta.status_code,
        headers=meta.headers,
        content=body,
        request=request,
    )


def patch_httpx(*, registry: Optional[StubRegistry] = None) -> Callable[[], None]:
    """Patch ``httpx.Client.send`` and ``httpx.AsyncClient.send``."""

    lookup = _lookup(registry)
    client_cls = httpx.Client
    async_client_cls = httpx.AsyncClient

    original_send = client_cls.send
    original_async_send = async_client_cls.send

    def patched_send(self, request, **kwargs):
        request.read()
        outcome = resolve(lookup(), request_from_httpx(request))
        return _httpx_response(request, outcome)

    async def patched_async_send(self, request, **kwargs):
        await request.aread()
        outcome = resolve(lookup(), request_from_httpx(request))
        return _httpx_response(request, outcome)

    client_cls.send = patched_send  # type: ignore[assignment]
    async_client_cls.send = patched_async_send  # type: ignore[assignment]

    def restore():
        if client_cls.send is patched_send:
            client_cls.send = original_send
        else:
            logger.warning("httpx.Client.send was replaced by someone else; not restoring")
        if async_client_cls.send is patched_async_send:
            async_client_cls.send = original_async_send
        else:
            logger.warning("httpx.AsyncClient.send was replaced by someone else; not restoring")

    return restore


# ---------------------------------------------------------------------------
# Compound installation
# ---------------------------------------------------------------------------


def _patch_clients() -> Callable[[], None]:
    revert_requests = patch_requests()
    revert_httpx = patch_httpx()
    logger.debug("Patched requests and httpx send methods")

    def restore():
        try:
            revert_httpx()
        finally:
            revert_requests()
        logger.debug("Restored requests and httpx send methods")

    return restore


def install_client_patches(registry: StubRegistry) -> Callable[[], None]:
    """Route patched clients to ``registry`` until the returned callable runs.

    Releases may happen in any order; the original ``send`` methods are
    restored once no registry is left.
    """

    global _restore_originals

    if not _active_registries:
        _restore_originals = _patch_clients()
    _active_registries.append(registry)
    released = False

    def restore():
        global _restore_originals

        nonlocal released
        if released:
            return
        released = True

        for index in range(len(_active_registries) - 1, -1, -1):
            if _active_registries[index] is registry:
                del _active_registries[index]
                break
        if not _active_registries and _restore_originals is not None:
            restore_originals, _restore_originals = _restore_originals, None
            restore_originals()

    return restore


@contextmanager
def http_proxy(registry: Optional[StubRegistry] = None) -> Iterator[StubRegistry]:
    """Claim ``requests`` and ``httpx`` traffic within the managed block.

    Only the client patches are managed here; the registry's own
    interception state is left untouched.
    """

    registry = registry if registry is not None else GLOBAL_REGISTRY
    restore = install_client_patches(registry)
    try:
        yield registry
    finally:
        restore()
