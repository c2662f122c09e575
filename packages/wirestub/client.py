"""The HTTP client under test.

``HttpClient`` hands a request to whichever transport it was built with and
normalises the outcome into a :data:`ClientResult`. Completions always run on
the client's worker pool, so calling code looks the same whether the
transport is real or intercepting.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from .config import HarnessSettings
from .errors import UnexpectedValuesError
from .models import Request, ResponseMeta
from .outcome import FailureOutcome, OutcomeCollector, TransportOutcome
from .transport import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Success:
    body: bytes
    meta: ResponseMeta


@dataclass(frozen=True)
class Failure:
    error: BaseException


ClientResult = Union[Success, Failure]
Completion = Callable[[ClientResult], Any]


def result_from_outcome(outcome: TransportOutcome) -> ClientResult:
    """Convert a terminal transport outcome into a client result.

    A reported error wins. Otherwise both a body and well-formed metadata are
    required; anything else is an :class:`UnexpectedValuesError`.
    """

    if isinstance(outcome, FailureOutcome):
        return Failure(outcome.error)

    has_body, has_meta = outcome.body is not None, outcome.meta is not None
    if not (has_body and has_meta):
        return Failure(UnexpectedValuesError(has_body=has_body, has_meta=has_meta))

    try:
        meta = ResponseMeta.coerce(outcome.meta)
    except ValidationError as e:
        logger.debug(f"Rejected malformed response metadata: {e}")
        return Failure(
            UnexpectedValuesError(
                has_body=has_body,
                has_meta=has_meta,
                detail=f"malformed metadata: {e.error_count()} error(s)",
            )
        )
    return Success(body=outcome.body, meta=meta)


class HttpClient:
    def __init__(
        self,
        transport: Transport,
        *,
        executor: Optional[Executor] = None,
        settings: Optional[HarnessSettings] = None,
    ):
        self.transport = transport
        self.settings = settings or HarnessSettings.from_env()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_workers, thread_name_prefix="wirestub"
        )

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    # Loading ---------------------------------------------------------------

    def load(self, request: Request, completion: Completion) -> "Future[ClientResult]":
        """Load ``request`` and call ``completion`` exactly once.

        Never completes on the calling thread. The returned future resolves
        to the result passed to ``completion``, or to the exception the
        completion raised.
        """

        logger.debug(f"Loading {request.method} {request.url}")
        return self._executor.submit(self._complete, request, completion)

    async def load_async(self, request: Request) -> ClientResult:
        future = self._executor.submit(self._execute, request)
        return await asyncio.wrap_future(future)

    def _complete(self, request: Request, completion: Completion) -> ClientResult:
        result = self._execute(request)
        completion(result)
        return result

    def _execute(self, request: Request) -> ClientResult:
        collector = OutcomeCollector()
        try:
            self.transport.start_loading(request, collector)
        except Exception as e:
            logger.debug(f"Transport raised for {request.method} {request.url}: {e!r}")
            return Failure(e)

        if not collector.finished:
            logger.warning(f"Transport returned without finishing {request.method} {request.url}")
            return Failure(
                UnexpectedValuesError(has_body=False, has_meta=False, detail="transport never finished")
            )
        return result_from_outcome(collector.outcome())
