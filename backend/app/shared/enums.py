# app/shared/enums.py
"""
Toutes les énumérations du back-office recrutement.

Source unique de vérité pour les statuts, rôles et types.
Les variantes de vocabulaire exposées par l'API (approved, shortlisted,
participant…) ne vivent pas ici : voir app.shared.vocabulary.
"""

from enum import Enum

class UserRole(str, Enum):
    USER  = "user"
    ADMIN = "admin"


class FormRole(str, Enum):
    CREW         = "crew"
    PARTICIPANTS = "participants"
    VOLUNTEER    = "volunteer"


class FieldType(str, Enum):
    TEXT          = "text"
    EMAIL         = "email"
    TEXTAREA      = "textarea"
    SELECT        = "select"
    CHECKBOX      = "checkbox"
    RADIO         = "radio"
    FILE          = "file"
    NUMBER        = "number"
    DATE          = "date"
    TEL           = "tel"
    PHONE         = "phone"
    URL           = "url"
    TIME          = "time"
    SCALE         = "scale"
    GRID_RADIO    = "grid_radio"
    GRID_CHECKBOX = "grid_checkbox"


class ResponseStatus(str, Enum):
    PENDING    = "pending"
    REVIEWED   = "reviewed"     # État intermédiaire "vu"
    ACCEPTED   = "accepted"     # → notification au candidat
    REJECTED   = "rejected"
    WAITLISTED = "waitlisted"


class ResponsePriority(str, Enum):
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"
    URGENT = "urgent"


class FormStatus(str, Enum):
    """Statut d'affichage dérivé, distinct du flag is_active."""
    INACTIVE = "inactive"
    FULL     = "full"
    EXPIRED  = "expired"
    UPCOMING = "upcoming"
    OPEN     = "open"


class NotificationType(str, Enum):
    INFO    = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR   = "error"
