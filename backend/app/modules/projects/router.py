# modules/projects/router.py
"""
Recrutement rattaché à une page projet.

GET  /project-items/{id}/recruitment         public : formulaire lié + statut
POST /project-items/{id}/recruitment         admin  : créer un formulaire lié
POST /project-items/{id}/recruitment/submit  public : candidater (Bearer optionnel)
"""
from fastapi import APIRouter, Request, status

from app.modules.projects.schemas import ProjectRecruitmentOut, ProjectSubmitOut
from app.modules.projects.service import ProjectRecruitmentService
from app.modules.recruitment.schemas import FormCreateIn, FormEnvelopeOut
from app.modules.responses.router import client_meta
from app.modules.responses.schemas import ApplicationIn
from app.shared.deps import AdminDep, DbDep, OptionalUserDep

router = APIRouter(prefix="/project-items", tags=["Project recruitment"])
service = ProjectRecruitmentService()


@router.get(
    "/{project_id}/recruitment",
    response_model=ProjectRecruitmentOut,
    summary="Formulaire de recrutement du projet",
)
async def get_project_recruitment(project_id: str, db: DbDep):
    return await service.get_active_form(db, project_id)


@router.post(
    "/{project_id}/recruitment",
    response_model=FormEnvelopeOut,
    status_code=status.HTTP_201_CREATED,
    summary="Créer le formulaire du projet",
)
async def create_project_recruitment(
    project_id: str, payload: FormCreateIn, db: DbDep, admin: AdminDep
):
    form = await service.create_for_project(db, project_id, payload, admin)
    return {"success": True, "data": form}


@router.post(
    "/{project_id}/recruitment/submit",
    response_model=ProjectSubmitOut,
    summary="Candidater via la page projet",
)
async def submit_project_application(
    project_id: str,
    payload: ApplicationIn,
    request: Request,
    db: DbDep,
    user: OptionalUserDep,
):
    ip, agent = client_meta(request)
    await service.submit(db, project_id, payload, user, ip_address=ip, user_agent=agent)
    return {"ok": True}
