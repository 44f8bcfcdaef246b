from resort.models.pricing import AddOnModel, PriceRuleModel
from resort.models.reservation import ReservationModel
from resort.models.resource import ExclusiveResourceModel, SharedSessionModel

__all__ = [
    "AddOnModel",
    "ExclusiveResourceModel",
    "PriceRuleModel",
    "ReservationModel",
    "SharedSessionModel",
]
