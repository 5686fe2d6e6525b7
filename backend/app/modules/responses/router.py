# modules/responses/router.py
"""
Candidatures : dépôt public lié à un formulaire, liste / review /
suppression côté admin.

Le filtre ?status= accepte le vocabulaire admin (approved, shortlisted)
et "all" ; la traduction vers les statuts stockés se fait ici.
"""
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from app.core.exceptions import ValidationError
from app.modules.responses.schemas import (
    FormApplicationIn,
    ID_REQUIRED,
    INVALID_STATUS,
    ResponseEnvelopeOut,
    ResponseListOut,
    ReviewIn,
    SubmitOut,
)
from app.modules.responses.service import ResponseService
from app.shared.deps import AdminDep, DbDep, OptionalUserDep
from app.shared.enums import ResponsePriority
from app.shared.schemas import SuccessOut
from app.shared.vocabulary import to_status_filter

router = APIRouter(prefix="/recruitment-responses", tags=["Recruitment responses"])
service = ResponseService()


def client_meta(request: Request):
    """(ip, user-agent) du soumetteur ; X-Forwarded-For prioritaire derrière un proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


# ─────────────────────────────────────────────
# PUBLIC
# ─────────────────────────────────────────────

@router.post(
    "",
    response_model=SubmitOut,
    status_code=status.HTTP_201_CREATED,
    summary="Déposer une candidature",
)
async def submit_application(
    payload: FormApplicationIn,
    request: Request,
    db: DbDep,
    user: OptionalUserDep,
):
    ip, agent = client_meta(request)
    response = await service.submit_for_form(db, payload, user, ip_address=ip, user_agent=agent)
    return {"success": True, "data": response}


# ─────────────────────────────────────────────
# ADMIN
# ─────────────────────────────────────────────

@router.get("", response_model=ResponseListOut, summary="Lister les candidatures")
async def list_responses(
    db: DbDep,
    admin: AdminDep,
    form_id: Optional[str] = Query(None, alias="formId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[ResponsePriority] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(20),
):
    # Bornes ramenées dans [1, 100] plutôt que rejetées
    page  = max(1, page)
    limit = max(1, min(100, limit))

    try:
        stored_status = to_status_filter(status_filter)
    except ValueError:
        raise ValidationError(INVALID_STATUS)

    return await service.list_responses(
        db,
        form_id=form_id or None,
        status=stored_status,
        priority=priority,
        search=(search or "").strip() or None,
        page=page,
        limit=limit,
    )


@router.get("/{response_id}", response_model=ResponseEnvelopeOut, summary="Détail d'une candidature")
async def get_response(response_id: str, db: DbDep, admin: AdminDep):
    return {"success": True, "data": await service.get_response(db, response_id)}


@router.put("", response_model=ResponseEnvelopeOut, summary="Review d'une candidature")
async def review_response(payload: ReviewIn, db: DbDep, admin: AdminDep):
    return {"success": True, "data": await service.review(db, payload, admin)}


@router.delete("", response_model=SuccessOut, summary="Supprimer une candidature")
async def delete_response(
    db: DbDep,
    admin: AdminDep,
    response_id: Optional[str] = Query(None, alias="id"),
):
    if not response_id:
        raise ValidationError(ID_REQUIRED)
    await service.delete_response(db, response_id)
    return {"success": True, "message": "Response deleted"}
