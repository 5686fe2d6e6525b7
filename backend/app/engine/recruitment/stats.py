# engine/recruitment/stats.py
"""Agrégats affichés en tête des listes admin."""
from __future__ import annotations
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


def round_half_up(value: float) -> int:
    """round() Python arrondit au pair (2.5 → 2) ; l'admin UI attend 3."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def average_field_count(field_lists: Iterable[list]) -> int:
    sizes = [len(fields or []) for fields in field_lists]
    if not sizes:
        return 0
    return round_half_up(sum(sizes) / len(sizes))


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
