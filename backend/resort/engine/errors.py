"""Error codes and rejection values for the booking engine.

Business outcomes (overlap, oversell, bad input, ambiguous pricing data) are
returned to callers as ``Rejection`` values so a controller can build a
"why did my booking fail" message without parsing text. Exceptions are kept
for component-level failures inside the engine and for store outages.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from resort.engine.types import PriceRule, Reservation


class RejectionKind(str, Enum):
    """Machine-readable rejection reasons."""

    INVALID_INPUT = "INVALID_INPUT"
    CONFLICT = "CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    RULE_RESOLUTION_AMBIGUOUS = "RULE_RESOLUTION_AMBIGUOUS"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"


class ErrorCode(str, Enum):
    """Fine-grained codes carried by engine exceptions."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_BASE_PRICE = "INVALID_BASE_PRICE"
    INVALID_RANGE = "INVALID_RANGE"
    INVALID_PARTY_SIZE = "INVALID_PARTY_SIZE"
    RULE_RESOLUTION_AMBIGUOUS = "RULE_RESOLUTION_AMBIGUOUS"
    UNIQUE_VIOLATION = "UNIQUE_VIOLATION"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


@dataclass(frozen=True)
class Rejection:
    """A typed refusal returned instead of a reservation or quote."""

    kind: RejectionKind
    message: str
    conflicts: tuple["Reservation", ...] = ()
    available: Optional[int] = None
    code: Optional[ErrorCode] = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class EngineError(Exception):
    """Base engine exception with code and user-safe message."""

    code: ErrorCode = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInputError(EngineError):
    """Raised for caller mistakes: bad ranges, prices, party sizes."""

    code = ErrorCode.INVALID_INPUT


class InvalidBasePriceError(InvalidInputError):
    code = ErrorCode.INVALID_BASE_PRICE


class InvalidRangeError(InvalidInputError):
    code = ErrorCode.INVALID_RANGE


class AmbiguousPriceRuleError(EngineError):
    """Two rules tie on priority, scope specificity and creation time."""

    code = ErrorCode.RULE_RESOLUTION_AMBIGUOUS

    def __init__(self, day, rules: tuple["PriceRule", ...]) -> None:
        ids = ", ".join(str(rule.id) for rule in rules)
        super().__init__(f"Price rules {ids} tie for {day.isoformat()}")
        self.day = day
        self.rules = rules


class UniqueViolationError(EngineError):
    """The store refused an insert because of a uniqueness constraint."""

    code = ErrorCode.UNIQUE_VIOLATION


class StoreUnavailableError(EngineError):
    """The persistence collaborator failed; never retried by the engine."""

    code = ErrorCode.STORE_UNAVAILABLE


def invalid_input(message: str, code: Optional[ErrorCode] = None) -> Rejection:
    return Rejection(kind=RejectionKind.INVALID_INPUT, message=message, code=code)


def not_found(message: str) -> Rejection:
    return Rejection(kind=RejectionKind.NOT_FOUND, message=message)


def invalid_transition(message: str) -> Rejection:
    return Rejection(kind=RejectionKind.INVALID_TRANSITION, message=message)


def rejection_from_error(error: EngineError) -> Rejection:
    """Convert a component-level engine exception into a rejection value."""
    if isinstance(error, AmbiguousPriceRuleError):
        return Rejection(
            kind=RejectionKind.RULE_RESOLUTION_AMBIGUOUS,
            message=error.message,
            code=error.code,
        )
    if isinstance(error, InvalidInputError):
        return invalid_input(error.message, code=error.code)
    raise error
