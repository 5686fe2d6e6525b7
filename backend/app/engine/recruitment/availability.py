# engine/recruitment/availability.py
"""
Disponibilité d'un formulaire de recrutement.

Deux lectures de la même règle :
    compute_status()          → statut d'affichage (page projet publique)
    submission_block_reason() → motif de refus d'une soumission, ou None

Ordre de priorité du statut :
    inactive > full > expired > upcoming > open

Ordre des contrôles à la soumission (le premier motif l'emporte) :
    actif → ouvert (start) → non clos (end) → non complet

Bornes de fenêtre incluses : une soumission à now == start_date ou
now == end_date est acceptée.

Aucune dépendance DB : les fonctions prennent des valeurs brutes
(ou un objet exposant les attributs du modèle RecruitmentForm).
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from app.core.database import ensure_utc
from app.shared.enums import FormStatus


# ── Motifs de refus (messages exposés tels quels à l'API) ─────────────────────

NOT_ACTIVE   = "Form not active"
NOT_YET_OPEN = "Form not yet open"
CLOSED       = "Form closed"
FULL         = "Form full"


def is_full(current: int, max_responses: Optional[int]) -> bool:
    """max_responses absent (ou 0) = capacité illimitée."""
    if not max_responses:
        return False
    return (current or 0) >= max_responses


def compute_status(form, now: Optional[datetime] = None) -> FormStatus:
    now   = ensure_utc(now) or datetime.now(timezone.utc)
    start = ensure_utc(form.start_date)
    end   = ensure_utc(form.end_date)

    if not form.is_active:
        return FormStatus.INACTIVE
    if is_full(form.current_responses, form.max_responses):
        return FormStatus.FULL
    if end is not None and now > end:
        return FormStatus.EXPIRED
    if start is not None and now < start:
        return FormStatus.UPCOMING
    return FormStatus.OPEN


def submission_block_reason(form, now: Optional[datetime] = None) -> Optional[str]:
    """
    Premier motif empêchant une nouvelle candidature, None si elle est admise.

    La capacité est relue ici à titre indicatif : la réservation effective
    se fait par UPDATE conditionnel côté repository.
    """
    now   = ensure_utc(now) or datetime.now(timezone.utc)
    start = ensure_utc(form.start_date)
    end   = ensure_utc(form.end_date)

    if not form.is_active:
        return NOT_ACTIVE
    if start is not None and now < start:
        return NOT_YET_OPEN
    if end is not None and now > end:
        return CLOSED
    if is_full(form.current_responses, form.max_responses):
        return FULL
    return None


def window_is_valid(start: Optional[datetime], end: Optional[datetime]) -> bool:
    """Une fenêtre à deux bornes exige end > start ; une borne absente est toujours valide."""
    if start is None or end is None:
        return True
    return ensure_utc(end) > ensure_utc(start)
