"""Environment-driven settings for the harness."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _read(
    environ: Mapping[str, str], name: str, parse: Callable[[str], T], default: T
) -> T:
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e


@dataclass(frozen=True)
class HarnessSettings:
    wait_timeout: float = 1.0
    max_workers: int = 4
    request_timeout: float = 30.0
    log_requests: bool = False

    def __post_init__(self) -> None:
        if self.wait_timeout <= 0:
            raise ValueError("wait_timeout must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessSettings":
        """Build settings from ``WIRESTUB_*`` environment variables."""

        env = os.environ if environ is None else environ
        return cls(
            wait_timeout=_read(env, "WIRESTUB_WAIT_TIMEOUT", float, cls.wait_timeout),
            max_workers=_read(env, "WIRESTUB_MAX_WORKERS", int, cls.max_workers),
            request_timeout=_read(
                env, "WIRESTUB_REQUEST_TIMEOUT", float, cls.request_timeout
            ),
            log_requests=_read(env, "WIRESTUB_LOG_REQUESTS", _parse_bool, cls.log_requests),
        )
