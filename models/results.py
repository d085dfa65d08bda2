from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    MODERATION_NOT_FOUND = "moderation_not_found"
    QUEUE_ENTRY_NOT_FOUND = "queue_entry_not_found"
    QUEUE_ENTRY_NOT_IN_REVIEW = "queue_entry_not_in_review"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Accepted. ``degraded`` marks work that fell back to manual handling."""

    value: T
    degraded: bool = False


@dataclass(frozen=True)
class Err:
    """Rejected at the boundary; the caller has to fix the input."""

    kind: ErrorKind
    message: str


Result = Union[Ok[T], Err]
