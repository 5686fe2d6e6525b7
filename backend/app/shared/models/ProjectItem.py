# app/models/project_item.py
"""
Projet / activité du site.

Seul le pointeur recruitment_form_id intéresse le recrutement : c'est
le formulaire "actuellement lié" que la page publique affiche et vers
lequel les soumissions publiques sont dirigées.
"""
from sqlalchemy import Column, String, DateTime, JSON

from app.core.database import Base, new_id, utcnow


class ProjectItem(Base):
    __tablename__ = "project_items"

    id     = Column(String(32), primary_key=True, default=new_id)
    type   = Column(String(20), nullable=False, default="project")   # project | activity | initiative
    title  = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, default="active")

    recruitment_form_id = Column(String(32), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<ProjectItem id={self.id} form={self.recruitment_form_id}>"
