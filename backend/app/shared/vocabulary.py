# app/shared/vocabulary.py
"""
Tables de traduction entre le vocabulaire de l'API et les enums canoniques.

L'admin UI parle "approved" / "shortlisted", le stockage "accepted" /
"waitlisted" ; les pages publiques affichent "participant" là où les
formulaires stockent "participants". La traduction se fait uniquement
aux frontières (schemas, query params), jamais dans les services.
"""
from typing import Dict, Optional

from app.shared.enums import FormRole, ResponseStatus

STATUS_ALIASES: Dict[str, ResponseStatus] = {
    "approved":    ResponseStatus.ACCEPTED,
    "shortlisted": ResponseStatus.WAITLISTED,
    "submitted":   ResponseStatus.PENDING,
}

# Clés des stats admin → statut stocké
ADMIN_STATS_KEYS: Dict[str, ResponseStatus] = {
    "pending":     ResponseStatus.PENDING,
    "approved":    ResponseStatus.ACCEPTED,
    "rejected":    ResponseStatus.REJECTED,
    "shortlisted": ResponseStatus.WAITLISTED,
}

ROLE_ALIASES: Dict[str, FormRole] = {
    "participant": FormRole.PARTICIPANTS,
}

# Libellé de roleApplied côté candidatures
RESPONSE_ROLE_LABELS: Dict[FormRole, str] = {
    FormRole.CREW:         "crew",
    FormRole.PARTICIPANTS: "participant",
    FormRole.VOLUNTEER:    "volunteer",
}


def to_status(value: str) -> ResponseStatus:
    """Lève ValueError si la valeur n'appartient à aucun des deux vocabulaires."""
    key = value.strip().lower()
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    return ResponseStatus(key)


def to_status_filter(value: Optional[str]) -> Optional[ResponseStatus]:
    """Filtre de liste : vide ou "all" → pas de filtre."""
    if not value or value.strip().lower() == "all":
        return None
    return to_status(value)


def to_role(value: str) -> FormRole:
    key = value.strip().lower()
    if key in ROLE_ALIASES:
        return ROLE_ALIASES[key]
    return FormRole(key)


def response_role_label(role: FormRole) -> str:
    return RESPONSE_ROLE_LABELS.get(FormRole(role), str(role))
