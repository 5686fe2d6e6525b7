# app/modules/responses/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, EmailStr, Field, field_validator, model_validator

from app.shared.enums import ResponsePriority, ResponseStatus
from app.shared.schemas import ApiModel, BilingualText, PaginationOut, blank_to_none
from app.shared.vocabulary import to_status

INVALID_PAYLOAD = "Invalid payload"
INVALID_STATUS  = "Invalid status"
ID_REQUIRED     = "Response ID required"


# ── Soumission (public) ────────────────────────────────────

class ApplicationIn(ApiModel):
    """
    Corps commun aux deux points d'entrée publics.
    answers est laissé brut : sa forme (objet ou liste) est contrôlée
    après les contrôles d'ouverture du formulaire.
    """
    applicant_name: Optional[str] = Field(None, max_length=100)
    applicant_email: Optional[EmailStr] = None
    answers: Any = None
    user_ref: Optional[str] = None

    @field_validator("applicant_name", "applicant_email", "user_ref", mode="before")
    @classmethod
    def strip_blank(cls, v: Any) -> Any:
        v = blank_to_none(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("applicant_email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @model_validator(mode="after")
    def check_payload(self):
        if not self.applicant_name or not self.applicant_email or self.answers is None:
            raise ValueError(INVALID_PAYLOAD)
        return self


class FormApplicationIn(ApplicationIn):
    form_id: Optional[str] = None

    @model_validator(mode="after")
    def check_form_id(self):
        if not self.form_id:
            raise ValueError(INVALID_PAYLOAD)
        return self


class SubmittedOut(ApiModel):
    id: str
    status: ResponseStatus
    submitted_at: Optional[datetime] = None


class SubmitOut(ApiModel):
    success: bool = True
    data: SubmittedOut
    message: str = "Application submitted successfully"


# ── Review (admin) ─────────────────────────────────────────

class ReviewIn(ApiModel):
    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"))
    status: Optional[ResponseStatus] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    review_notes: Optional[str] = Field(None, max_length=1000)
    priority: Optional[ResponsePriority] = None

    @field_validator("status", mode="before")
    @classmethod
    def status_alias(cls, v: Any) -> Any:
        """Accepte le vocabulaire admin (approved, shortlisted, submitted)."""
        v = blank_to_none(v)
        if v is None or isinstance(v, ResponseStatus):
            return v
        try:
            return to_status(str(v))
        except ValueError:
            raise ValueError(INVALID_STATUS)

    @field_validator("priority", mode="before")
    @classmethod
    def empty_priority(cls, v: Any) -> Any:
        return blank_to_none(v)

    @model_validator(mode="after")
    def check_id(self):
        if not self.id:
            raise ValueError(ID_REQUIRED)
        return self


# ── Vue admin ──────────────────────────────────────────────

class ResponseAdminOut(ApiModel):
    id: str
    form_id: Optional[str] = None
    form_title: Optional[BilingualText] = None
    project_item_id: Optional[str] = None
    role_applied: str
    created_at: Optional[datetime] = None
    submitter_name: str
    submitter_email: str
    submitter_phone: Optional[Any] = None
    status: ResponseStatus
    priority: ResponsePriority
    rating: Optional[int] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    user_ref: Optional[str] = None
    responses: Dict[str, Any] = {}
    attachments: List[Any] = []
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class ResponseEnvelopeOut(ApiModel):
    success: bool = True
    data: ResponseAdminOut


class ResponseStatsOut(ApiModel):
    """Vocabulaire admin : approved = accepted, shortlisted = waitlisted."""
    total: int
    pending: int
    approved: int
    rejected: int
    shortlisted: int


class ResponseListOut(ApiModel):
    success: bool = True
    data: List[ResponseAdminOut]
    stats: ResponseStatsOut
    pagination: PaginationOut
