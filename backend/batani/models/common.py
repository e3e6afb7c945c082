from __future__ import annotations

import uuid
from decimal import Decimal


MONEY_QUANTUM = Decimal("0.01")


def new_id() -> str:
    """Opaque unique key for every collection."""
    return uuid.uuid4().hex


def money_str(value) -> str | None:
    if value is None:
        return None
    return str(Decimal(value).quantize(MONEY_QUANTUM))
