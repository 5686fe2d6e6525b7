# app/models/recruitment_response.py
"""
Candidature d'un postulant à un RecruitmentForm.

Cycle : PENDING → REVIEWED → ACCEPTED / REJECTED / WAITLISTED

form_ref n'a volontairement pas de contrainte FK : l'intégrité
référentielle est vérifiée par l'audit (réponses orphelines).
"""
from sqlalchemy import Column, String, Integer, DateTime, JSON

from app.core.database import Base, new_id, str_enum, utcnow
from app.shared.enums import FormRole, ResponseStatus, ResponsePriority


class RecruitmentResponse(Base):
    __tablename__ = "recruitment_responses"

    id               = Column(String(32), primary_key=True, default=new_id)
    form_ref         = Column(String(32), nullable=False, index=True)
    project_item_ref = Column(String(32), nullable=True, index=True)

    role_applied = Column(str_enum(FormRole), nullable=False)
    answers      = Column(JSON, nullable=False, default=dict)   # {field_id: valeur}

    applicant_name  = Column(String(100), nullable=False)
    applicant_email = Column(String, nullable=False, index=True)
    user_ref        = Column(String(32), nullable=True, index=True)

    status   = Column(str_enum(ResponseStatus), default=ResponseStatus.PENDING, nullable=False, index=True)
    priority = Column(str_enum(ResponsePriority), default=ResponsePriority.MEDIUM, nullable=False)
    rating   = Column(Integer, nullable=True)      # 1–5

    review_notes = Column(String(1000), nullable=True)
    reviewed_by  = Column(String(32), nullable=True)
    reviewed_at  = Column(DateTime(timezone=True), nullable=True)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    submitted_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at   = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<RecruitmentResponse id={self.id} form={self.form_ref} status={self.status}>"
