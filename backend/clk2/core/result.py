"""Results — explicit success/failure values returned by the pure core.

Invariants:
    - Ok carries the value; Err carries a typed Clk2Error instance (never raised in core)
    - unwrap() is the only place an Err turns into an exception, and it is called by the shell

Design Decisions:
    - Two frozen dataclasses over a third-party Result library: isinstance checks read
      naturally at every call site
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from clk2.core.errors import Clk2Error

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""
    value: T


@dataclass(frozen=True)
class Err:
    """Failed outcome with its typed reason."""
    error: Clk2Error


Result = Union[Ok[T], Err]


def unwrap(result: "Result[T]") -> T:
    """Return the Ok value or raise the Err's error."""
    if isinstance(result, Err):
        raise result.error
    return result.value
