"""Tagged results for best-effort pipeline stages.

Stages that talk to unreliable collaborators return one of these instead of
raising, so the caller branches explicitly on what happened:

- ``Ok(value)``: the stage produced a usable value
- ``Skip(reason)``: nothing went wrong but there is nothing to act on
- ``Failed(error)``: the stage failed; ``error`` carries the cause
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Skip:
    reason: str


@dataclass(frozen=True)
class Failed:
    error: Exception

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


StageResult = Union[Ok[T], Skip, Failed]
