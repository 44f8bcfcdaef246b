"""
Translation of engine rejections into HTTP errors.
"""

from typing import Union, TypeVar

from fastapi import HTTPException, status

from resort.engine.errors import Rejection, RejectionKind
from resort.schemas.reservation import ConflictResponse

T = TypeVar("T")

STATUS_BY_KIND = {
    RejectionKind.INVALID_INPUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RejectionKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectionKind.CONFLICT: status.HTTP_409_CONFLICT,
    RejectionKind.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    RejectionKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    # Pricing data needs an operator, not a retry
    RejectionKind.RULE_RESOLUTION_AMBIGUOUS: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def rejection_detail(rejection: Rejection) -> dict:
    detail = {"kind": rejection.kind.value, "message": rejection.message}
    if rejection.available is not None:
        detail["available"] = rejection.available
    if rejection.conflicts:
        detail["conflicts"] = [
            ConflictResponse.model_validate(r).model_dump(mode="json") for r in rejection.conflicts
        ]
    return detail


def unwrap(outcome: Union[T, Rejection]) -> T:
    """Return the engine result or raise the HTTPException matching its rejection."""
    if isinstance(outcome, Rejection):
        raise HTTPException(
            status_code=STATUS_BY_KIND[outcome.kind],
            detail=rejection_detail(outcome),
        )
    return outcome
