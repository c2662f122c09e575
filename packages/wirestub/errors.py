"""Errors raised by the wirestub harness."""

from __future__ import annotations

from typing import Dict, Optional

ExtraInfoType = Dict[str, Optional[str]]


class ClientError(Exception):
    """Base class for errors produced by the harness itself."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        self.extra_info = dict(extra_info or {})
        msg = message
        details = [f"{key}: {value}" for key, value in self.extra_info.items() if value is not None]
        if details:
            msg += " (" + ", ".join(details) + ")"
        super().__init__(msg)


class NetworkError(ClientError):
    """A network failure, usually placed into a stub to simulate one."""


class UnexpectedValuesError(ClientError):
    """The transport finished without an error and without a usable response."""

    def __init__(self, *, has_body: bool, has_meta: bool, detail: str | None = None):
        self.has_body = has_body
        self.has_meta = has_meta
        super().__init__(
            "The transport delivered an unexpected combination of values.",
            extra_info={"body": str(has_body), "meta": str(has_meta), "detail": detail},
        )


class TransportStateError(ClientError):
    """A transport reported something after its terminal signal."""

    def __init__(self, action: str, message: str = "Report after the load already finished."):
        super().__init__(message, extra_info={"action": action})
