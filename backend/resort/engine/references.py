"""Human-facing booking numbers: ``C-261017-4F09A2`` for stays, ``P-...`` for tickets."""

import secrets
from datetime import datetime

STAY_PREFIX = "C"
TICKET_PREFIX = "P"


def new_reference(prefix: str, now: datetime) -> str:
    return f"{prefix}-{now:%y%m%d}-{secrets.token_hex(3).upper()}"
