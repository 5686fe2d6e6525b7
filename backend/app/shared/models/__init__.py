# app/shared/models/__init__.py
"""
Point d'entrée unique pour tous les modèles SQLAlchemy.

TOUJOURS importer les modèles depuis ce fichier :
  from app.shared.models import RecruitmentForm, RecruitmentResponse, ...

→ Garantit que tous les modèles sont enregistrés dans Base.metadata
  avant la création des tables (Alembic, create_all).

Aucune FK déclarée : les références (form_ref, recruitment_form_id,
user_ref) sont des ids opaques dont l'intégrité est contrôlée par l'audit.
"""

from app.shared.models.User                import User
from app.shared.models.ProjectItem         import ProjectItem
from app.shared.models.RecruitmentForm     import RecruitmentForm
from app.shared.models.RecruitmentResponse import RecruitmentResponse
from app.shared.models.Notification        import Notification

__all__ = [
    "User",
    "ProjectItem",
    # Recrutement
    "RecruitmentForm",
    "RecruitmentResponse",
    # Bridge review → notification
    "Notification",
]
