"""Tagged results returned across component boundaries instead of raising."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")

INVALID = "invalid"
NOT_FOUND = "not_found"
UPSTREAM = "upstream"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Failure:
    """A failed operation.

    ``kind`` lets the HTTP layer pick a status code: ``invalid`` -> 400,
    ``not_found`` -> 404, ``upstream`` -> 500. ``fallback`` carries a value
    the caller may still render (the analysis placeholder, for instance).
    """

    error: str
    kind: str = INVALID
    fallback: Any = None
    ok: ClassVar[bool] = False


Result = Union[Success[T], Failure]
