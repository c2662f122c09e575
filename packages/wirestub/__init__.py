"""Deterministic HTTP interception for unit tests."""

from .client import ClientResult, Failure, HttpClient, Success, result_from_outcome
from .config import HarnessSettings
from .errors import ClientError, NetworkError, TransportStateError, UnexpectedValuesError
from .http_proxy import http_proxy
from .models import Request, ResponseMeta, StubSpec
from .outcome import DataOutcome, FailureOutcome, OutcomeCollector, TransportDelegate
from .registry import GLOBAL_REGISTRY, RequestObserver, StubRegistry, intercepting
from .testing import CompletionRecorder
from .transport import HTTPXTransport, InterceptingTransport, Transport

__all__ = [
    "ClientError",
    "ClientResult",
    "CompletionRecorder",
    "DataOutcome",
    "Failure",
    "FailureOutcome",
    "GLOBAL_REGISTRY",
    "HTTPXTransport",
    "HarnessSettings",
    "HttpClient",
    "InterceptingTransport",
    "NetworkError",
    "OutcomeCollector",
    "Request",
    "RequestObserver",
    "ResponseMeta",
    "StubRegistry",
    "StubSpec",
    "Success",
    "Transport",
    "TransportDelegate",
    "TransportStateError",
    "UnexpectedValuesError",
    "http_proxy",
    "intercepting",
    "result_from_outcome",
]
