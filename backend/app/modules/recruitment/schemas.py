# app/modules/recruitment/schemas.py
import time
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from app.engine.recruitment.availability import window_is_valid
from app.shared.enums import FieldType, FormRole, FormStatus
from app.shared.schemas import (
    ApiModel, Bilingual, BilingualText, PaginationOut,
    blank_to_none, utc_or_none,
)
from app.shared.vocabulary import to_role

TITLE_REQUIRED   = "Title in both languages is required"
TITLE_TOO_LONG   = "Title cannot exceed 200 characters"
DESC_TOO_LONG    = "Description cannot exceed 1000 characters"
ROLE_INVALID     = "Role must be crew, participants, or volunteer"
FIELDS_REQUIRED  = "At least one form field is required"
FIELDS_DUPLICATE = "Field IDs must be unique within a form"
DATES_INVALID    = "End date must be after start date"
ID_REQUIRED      = "Form ID is required"
STATUS_INVALID   = "Status must be inactive, full, expired, upcoming, or open"


# ── Champs ─────────────────────────────────────────────────

class FieldOption(ApiModel):
    en: str = ""
    ta: str = ""
    value: str = ""

    @model_validator(mode="before")
    @classmethod
    def from_string(cls, data: Any) -> Any:
        if isinstance(data, (str, int, float)):
            text = str(data)
            return {"en": text, "ta": text, "value": text}
        if isinstance(data, dict):
            en = str(data.get("en") or "")
            ta = str(data.get("ta") or en)
            value = data.get("value")
            return {"en": en, "ta": ta, "value": str(value) if value not in (None, "") else en}
        return data


class FieldValidation(ApiModel):
    """Persisté pour le rendu côté client ; non appliqué à la soumission."""
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None


class FormFieldIn(ApiModel):
    id: Optional[str] = None
    label: Bilingual
    type: FieldType = FieldType.TEXT
    options: Optional[List[FieldOption]] = None
    required: bool = False
    order: Optional[int] = None
    placeholder: Optional[Bilingual] = None
    validation: Optional[FieldValidation] = None

    @field_validator("id", mode="before")
    @classmethod
    def strip_id(cls, v: Any) -> Any:
        v = blank_to_none(v)
        return str(v).strip() if v is not None else None


class FormFieldOut(ApiModel):
    id: str
    label: BilingualText
    type: FieldType = FieldType.TEXT
    options: Optional[List[FieldOption]] = None
    required: bool = False
    order: int = 0
    placeholder: Optional[BilingualText] = None
    validation: Optional[FieldValidation] = None


def normalize_fields(fields: List[FormFieldIn]) -> List[FormFieldIn]:
    """
    Ids générés "<epoch-ms>-<index>" si absents, order = index + 1 si absent.
    Lève ValueError sur liste vide ou ids dupliqués.
    """
    if not fields:
        raise ValueError(FIELDS_REQUIRED)

    stamp = int(time.time() * 1000)
    for idx, field in enumerate(fields):
        if not field.id:
            field.id = f"{stamp}-{idx}"
        if field.order is None:
            field.order = idx + 1

    ids = [f.id for f in fields]
    if len(ids) != len(set(ids)):
        raise ValueError(FIELDS_DUPLICATE)
    return fields


def dump_fields(fields: List[FormFieldIn]) -> List[dict]:
    """Forme stockée en JSON : identique au format API (camelCase)."""
    return [f.model_dump(by_alias=True, exclude_none=True, mode="json") for f in fields]


def check_title(title: Optional[BilingualText]) -> None:
    if title is None or not title.is_complete:
        raise ValueError(TITLE_REQUIRED)
    if title.longest() > 200:
        raise ValueError(TITLE_TOO_LONG)


def check_description(description: Optional[BilingualText]) -> None:
    if description is not None and description.longest() > 1000:
        raise ValueError(DESC_TOO_LONG)


def check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
    if not window_is_valid(start, end):
        raise ValueError(DATES_INVALID)


def parse_role(v: Any) -> Any:
    if v is None or isinstance(v, FormRole):
        return v
    try:
        return to_role(str(v))
    except ValueError:
        raise ValueError(ROLE_INVALID)


# ── Formulaire ─────────────────────────────────────────────

class FormCreateIn(ApiModel):
    title: Optional[Bilingual] = None
    description: Optional[Bilingual] = None
    role: Optional[FormRole] = None
    fields: List[FormFieldIn] = Field(default_factory=list)
    project_item_id: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_responses: Optional[int] = Field(None, ge=1)
    email_notification: bool = False

    @field_validator("role", mode="before")
    @classmethod
    def role_alias(cls, v: Any) -> Any:
        return parse_role(v)

    @field_validator("project_item_id", "image", "start_date", "end_date", "max_responses", mode="before")
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return utc_or_none(v)

    @model_validator(mode="after")
    def check_form(self) -> "FormCreateIn":
        check_title(self.title)
        check_description(self.description)
        if self.role is None:
            raise ValueError(ROLE_INVALID)
        self.fields = normalize_fields(self.fields)
        check_window(self.start_date, self.end_date)
        return self


class FormUpdateIn(ApiModel):
    """
    Mise à jour partielle : seules les clés présentes sont appliquées
    (model_dump(exclude_unset=True)). La cohérence des dates est vérifiée
    par le service après fusion avec les valeurs stockées.
    """
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"))
    title: Optional[Bilingual] = None
    description: Optional[Bilingual] = None
    role: Optional[FormRole] = None
    fields: Optional[List[FormFieldIn]] = None
    project_item_id: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_responses: Optional[int] = Field(None, ge=1)
    email_notification: Optional[bool] = None

    @field_validator("role", mode="before")
    @classmethod
    def role_alias(cls, v: Any) -> Any:
        return parse_role(v)

    @field_validator("project_item_id", "image", "start_date", "end_date", "max_responses", mode="before")
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        return blank_to_none(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return utc_or_none(v)

    @model_validator(mode="after")
    def check_provided(self) -> "FormUpdateIn":
        if not self.id:
            raise ValueError(ID_REQUIRED)
        provided = self.model_fields_set
        if "title" in provided:
            check_title(self.title)
        if "description" in provided:
            check_description(self.description)
        if "role" in provided and self.role is None:
            raise ValueError(ROLE_INVALID)
        if "fields" in provided:
            self.fields = normalize_fields(self.fields or [])
        return self


class FormOut(ApiModel):
    id: str
    title: BilingualText
    description: Optional[BilingualText] = None
    role: FormRole
    fields: List[FormFieldOut] = []
    project_item_id: Optional[str] = None
    image: Optional[str] = None
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_responses: Optional[int] = None
    current_responses: int = 0
    email_notification: bool = False
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status: Optional[FormStatus] = None


class FormEnvelopeOut(ApiModel):
    success: bool = True
    data: FormOut


# ── Liste admin ────────────────────────────────────────────

class FormStatsOut(ApiModel):
    total: int
    active: int
    total_submissions: int
    avg_fields: int


class FormListOut(ApiModel):
    success: bool = True
    data: List[FormOut]
    stats: FormStatsOut
    pagination: PaginationOut


# ── Compteurs ──────────────────────────────────────────────

class RecountOut(ApiModel):
    success: bool = True
    form_id: str
    previous: int
    count: int


class RecountAllOut(ApiModel):
    success: bool = True
    forms: int
    corrected: int
    results: List[RecountOut] = []


class CounterCheckOut(ApiModel):
    form_id: str
    title: BilingualText
    stored: int
    live: int
    mismatch: bool


class AuditOut(ApiModel):
    success: bool = True
    consistent: bool
    forms: List[CounterCheckOut]
    mismatches: int
    orphan_response_ids: List[str]


# ── Vue publique ───────────────────────────────────────────

class PublicFormOut(ApiModel):
    """Vue publique d'un formulaire : pas de métadonnées admin."""
    id: str
    title: BilingualText
    description: Optional[BilingualText] = None
    role: FormRole
    status: FormStatus
    fields: List[FormFieldOut] = []
    image: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_responses: Optional[int] = None
    current_responses: int = 0


class PublicFormListOut(ApiModel):
    success: bool = True
    data: List[PublicFormOut]
    pagination: PaginationOut
