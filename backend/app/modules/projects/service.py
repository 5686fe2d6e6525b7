# modules/projects/service.py
"""
Recrutement vu depuis une page projet.

Le projet pointe vers au plus un formulaire (recruitment_form_id).
Un pointeur vide ou pendant (formulaire supprimé) équivaut à
"pas de recrutement" : form = null, status = inactive.

Création et dépôt délèguent aux services recruitment / responses ;
ce service ne fait que résoudre le projet et son formulaire lié.
"""
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.engine.recruitment.availability import compute_status
from app.modules.projects.repository import ProjectRepository
from app.modules.recruitment.repository import RecruitmentFormRepository
from app.modules.recruitment.schemas import FormCreateIn
from app.modules.recruitment.service import RecruitmentFormService, public_view
from app.modules.responses.schemas import ApplicationIn
from app.modules.responses.service import ResponseService
from app.shared.enums import FormStatus
from app.shared.models import RecruitmentForm, User

repo      = ProjectRepository()
form_repo = RecruitmentFormRepository()

form_service     = RecruitmentFormService()
response_service = ResponseService()

NO_FORM = "No recruitment form available for this project"


class ProjectRecruitmentService:

    async def _get_project(self, db: AsyncSession, project_id: str):
        project = await repo.get_by_id(db, project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    async def get_active_form(self, db: AsyncSession, project_id: str) -> Dict[str, Any]:
        project = await self._get_project(db, project_id)

        form = None
        if project.recruitment_form_id:
            form = await form_repo.get_by_id(db, project.recruitment_form_id)
        if form is None:
            return {"success": True, "form": None, "status": FormStatus.INACTIVE, "message": NO_FORM}

        form_status = compute_status(form)
        return {
            "success": True,
            "form": public_view(form, form_status),
            "status": form_status,
        }

    async def create_for_project(
        self, db: AsyncSession, project_id: str, payload: FormCreateIn, admin: User
    ) -> RecruitmentForm:
        """Le projet de l'URL l'emporte sur un éventuel projectItemId du corps."""
        payload.project_item_id = project_id
        return await form_service.create_form(db, payload, admin)

    async def submit(
        self,
        db: AsyncSession,
        project_id: str,
        payload: ApplicationIn,
        user: Optional[User] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        project = await self._get_project(db, project_id)
        if not project.recruitment_form_id:
            raise NotFoundError(NO_FORM)

        form = await form_repo.get_by_id(db, project.recruitment_form_id)
        if not form:
            raise NotFoundError("Recruitment form not found")

        await response_service.intake(
            db, form, payload,
            user_ref=user.id if user else None,
            project_item_ref=project.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
