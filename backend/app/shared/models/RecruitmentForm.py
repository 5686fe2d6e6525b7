# app/models/recruitment_form.py
"""
Formulaire de recrutement.

title / description / fields sont stockés en JSON (structure bilingue
{en, ta} normalisée en amont par les schemas).

current_responses est un compteur dénormalisé : il n'est modifié que via
RecruitmentFormRepository.adjust_response_count / set_response_count.
La vérité reste count(RecruitmentResponse.form_ref == id), voir recount().
"""
from sqlalchemy import CheckConstraint, Column, String, Boolean, Integer, DateTime, JSON

from app.core.database import Base, new_id, str_enum, utcnow
from app.shared.enums import FormRole


class RecruitmentForm(Base):
    __tablename__ = "recruitment_forms"
    __table_args__ = (
        CheckConstraint("current_responses >= 0", name="ck_recruitment_forms_counter_positive"),
    )

    id = Column(String(32), primary_key=True, default=new_id)

    title       = Column(JSON, nullable=False)    # {"en": ..., "ta": ...}
    description = Column(JSON, nullable=True)
    role        = Column(str_enum(FormRole), nullable=False, index=True)
    fields      = Column(JSON, nullable=False, default=list)
    image       = Column(String(500), nullable=True)

    # Pas de FK : un projet supprimé laisse un lien pendant, détecté à la lecture
    project_item_id = Column(String(32), nullable=True, index=True)

    is_active  = Column(Boolean, default=True, nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date   = Column(DateTime(timezone=True), nullable=True)

    max_responses     = Column(Integer, nullable=True)
    current_responses = Column(Integer, default=0, nullable=False)

    email_notification = Column(Boolean, default=False, nullable=False)
    created_by         = Column(String(32), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<RecruitmentForm id={self.id} role={self.role} responses={self.current_responses}/{self.max_responses}>"
