# modules/recruitment/router.py
"""
Back-office admin des formulaires de recrutement.
Couvre : CRUD formulaires, recomptage du compteur, audit d'intégrité,
et la liste publique des formulaires (seule route sans authentification).

Architecture :
- Toute logique métier → RecruitmentFormService
- Les erreurs métier (AppError) remontent telles quelles jusqu'aux
  handlers de app.main : aucun try/except ici
"""
from typing import Optional

from fastapi import APIRouter, Query, status

from app.core.exceptions import ValidationError
from app.modules.recruitment.schemas import (
    AuditOut,
    FormCreateIn,
    FormEnvelopeOut,
    FormListOut,
    FormUpdateIn,
    PublicFormListOut,
    RecountAllOut,
    RecountOut,
    ROLE_INVALID,
    STATUS_INVALID,
)
from app.modules.recruitment.service import RecruitmentFormService
from app.shared.deps import AdminDep, DbDep
from app.shared.enums import FormStatus
from app.shared.schemas import SuccessOut
from app.shared.vocabulary import to_role

router = APIRouter(prefix="/recruitment-forms", tags=["Recruitment forms"])
service = RecruitmentFormService()


# ─────────────────────────────────────────────
# PUBLIC
# ─────────────────────────────────────────────

@router.get("/public", response_model=PublicFormListOut, summary="Formulaires publiés")
async def list_public_forms(
    db: DbDep,
    role: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    available: bool = Query(False),
    page: int = Query(1),
    limit: int = Query(10),
):
    """
    Pas d'authentification. ?available=true ne garde que les formulaires
    ouverts à la candidature (équivaut à ?status=open).
    """
    page  = max(1, page)
    limit = max(1, min(50, limit))

    role_filter = None
    if role:
        try:
            role_filter = to_role(role)
        except ValueError:
            raise ValidationError(ROLE_INVALID)

    form_status = None
    if status_filter:
        try:
            form_status = FormStatus(status_filter.strip().lower())
        except ValueError:
            raise ValidationError(STATUS_INVALID)

    return await service.list_public(
        db,
        role=role_filter,
        form_status=form_status,
        available=available,
        page=page,
        limit=limit,
    )


# ─────────────────────────────────────────────
# LECTURE
# ─────────────────────────────────────────────

@router.get("", response_model=FormListOut, summary="Lister les formulaires")
async def list_forms(
    db: DbDep,
    admin: AdminDep,
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    project_item_id: Optional[str] = Query(None, alias="projectItemId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    role_filter = None
    if role:
        try:
            role_filter = to_role(role)
        except ValueError:
            raise ValidationError(ROLE_INVALID)

    return await service.list_forms(
        db,
        search=search or None,
        role=role_filter,
        is_active=is_active,
        project_item_id=project_item_id or None,
        page=page,
        limit=limit,
    )


@router.get("/audit", response_model=AuditOut, summary="Contrôle compteurs / orphelins")
async def audit_forms(db: DbDep, admin: AdminDep):
    return await service.audit(db)


@router.get("/{form_id}", response_model=FormEnvelopeOut, summary="Détail d'un formulaire")
async def get_form(form_id: str, db: DbDep, admin: AdminDep):
    return {"success": True, "data": await service.get_form(db, form_id)}


# ─────────────────────────────────────────────
# ÉCRITURE
# ─────────────────────────────────────────────

@router.post(
    "",
    response_model=FormEnvelopeOut,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un formulaire",
)
async def create_form(payload: FormCreateIn, db: DbDep, admin: AdminDep):
    """
    409 si un autre formulaire actif du même projet chevauche la fenêtre
    demandée : le corps contient alors la liste `overlaps`.
    """
    form = await service.create_form(db, payload, admin)
    return {"success": True, "data": form}


@router.put("", response_model=FormEnvelopeOut, summary="Modifier un formulaire")
async def update_form(payload: FormUpdateIn, db: DbDep, admin: AdminDep):
    form = await service.update_form(db, payload)
    return {"success": True, "data": form}


@router.delete("", response_model=SuccessOut, summary="Supprimer un formulaire")
async def delete_form(
    db: DbDep,
    admin: AdminDep,
    form_id: Optional[str] = Query(None, alias="id"),
):
    if not form_id:
        raise ValidationError("Form ID is required")
    await service.delete_form(db, form_id)
    return {"success": True, "message": "Recruitment form deleted successfully"}


# ─────────────────────────────────────────────
# COMPTEUR
# ─────────────────────────────────────────────

@router.post("/recount", response_model=RecountAllOut, summary="Recompter tous les formulaires")
async def recount_all(db: DbDep, admin: AdminDep):
    return await service.recount_all(db)


@router.post("/{form_id}/recount", response_model=RecountOut, summary="Recompter un formulaire")
async def recount_form(form_id: str, db: DbDep, admin: AdminDep):
    return await service.recount(db, form_id)
