# engine/recruitment/overlap.py
"""
Détection de chevauchement de fenêtres entre formulaires d'un même projet.

Deux intervalles [s1, e1] et [s2, e2] se chevauchent ssi :
    s1 < e2  ET  s2 < e1

Une borne absente vaut l'infini : start absent = −∞, end absent = +∞.
Deux formulaires sans aucune date se chevauchent donc toujours.
Les intervalles qui se touchent (e1 == s2) ne se chevauchent pas.
"""
from __future__ import annotations
from datetime import datetime
from typing import Iterable, List, Optional

from app.core.database import ensure_utc


def ranges_overlap(
    start_a: Optional[datetime],
    end_a:   Optional[datetime],
    start_b: Optional[datetime],
    end_b:   Optional[datetime],
) -> bool:
    start_a, end_a = ensure_utc(start_a), ensure_utc(end_a)
    start_b, end_b = ensure_utc(start_b), ensure_utc(end_b)

    # s_a < e_b (faux seulement si les deux bornes existent et s_a >= e_b)
    a_before_b_end = start_a is None or end_b is None or start_a < end_b
    b_before_a_end = start_b is None or end_a is None or start_b < end_a
    return a_before_b_end and b_before_a_end


def find_overlaps(
    start: Optional[datetime],
    end: Optional[datetime],
    candidates: Iterable,
    exclude_id: Optional[str] = None,
) -> List:
    """
    Filtre les formulaires candidats (déjà restreints aux formulaires actifs
    du projet par le repository) dont la fenêtre chevauche [start, end].
    """
    return [
        form for form in candidates
        if form.id != exclude_id
        and ranges_overlap(start, end, form.start_date, form.end_date)
    ]
