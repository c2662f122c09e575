"""Value types shared by the registry, transports and client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

HeaderItems = Tuple[Tuple[str, str], ...]


def _header_items(headers: Union[Mapping[str, str], HeaderItems, None]) -> HeaderItems:
    if not headers:
        return ()
    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple((str(name).lower(), str(value)) for name, value in items)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Request:
    """An outgoing HTTP request, compared by value.

    Header names are lower-cased so two requests built from differently cased
    mappings compare equal.
    """

    method: str
    url: str
    headers: HeaderItems = ()
    body: Optional[bytes] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _header_items(self.headers))
        if self.body is not None:
            object.__setattr__(self, "body", bytes(self.body))

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers:
            if key == wanted:
                return value
        return default

    def header_dict(self) -> dict[str, str]:
        return dict(self.headers)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ResponseMeta(BaseModel):
    """Status line and headers of an HTTP response.

    Accepts ``status`` as a shorthand for ``status_code`` so stubs can be
    written as ``{"status": 200}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status_code: int = Field(
        validation_alias=AliasChoices("status_code", "status"), ge=100, le=599
    )
    headers: dict[str, str] = Field(default_factory=dict)
    url: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "ResponseMeta":
        """Validate ``value`` into a :class:`ResponseMeta`.

        Raises :class:`pydantic.ValidationError` when it is malformed.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, BaseModel):
            value = value.model_dump()
        return cls.model_validate(value)


MetaLike = Union[ResponseMeta, Mapping[str, Any]]


@dataclass(frozen=True)
class StubSpec:
    """A canned outcome served for every intercepted request.

    Fields are validated only when the client converts the outcome, so a
    deliberately malformed stub (for example an empty one) can be built.
    """

    body: Optional[bytes] = None
    response_meta: Optional[MetaLike] = None
    error: Optional[BaseException] = None

    def __post_init__(self) -> None:
        if self.body is not None and not isinstance(self.body, bytes):
            object.__setattr__(self, "body", bytes(self.body))

    @property
    def is_empty(self) -> bool:
        return self.body is None and self.response_meta is None and self.error is None
