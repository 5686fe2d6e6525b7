# modules/responses/repository.py
"""
Accès DB pour les candidatures.

Pas de commit ici : submit (réservation + insert) et delete
(suppression + décrément) sont commités ensemble par le service.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.enums import ResponsePriority, ResponseStatus
from app.shared.models import RecruitmentForm, RecruitmentResponse


class ResponseRepository:

    async def get_by_id(self, db: AsyncSession, response_id: str) -> Optional[RecruitmentResponse]:
        r = await db.execute(
            select(RecruitmentResponse).where(RecruitmentResponse.id == response_id)
        )
        return r.scalar_one_or_none()

    async def create(self, db: AsyncSession, values: Dict[str, Any]) -> RecruitmentResponse:
        response = RecruitmentResponse(**values)
        db.add(response)
        await db.flush()
        return response

    async def apply_changes(
        self, db: AsyncSession, response: RecruitmentResponse, changes: Dict[str, Any]
    ) -> RecruitmentResponse:
        for attr, value in changes.items():
            setattr(response, attr, value)
        await db.flush()
        return response

    async def delete(self, db: AsyncSession, response: RecruitmentResponse) -> None:
        await db.delete(response)
        await db.flush()

    async def list_responses(
        self,
        db: AsyncSession,
        form_id: Optional[str] = None,
        status: Optional[ResponseStatus] = None,
        priority: Optional[ResponsePriority] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[RecruitmentResponse], int]:
        q = select(RecruitmentResponse)
        if form_id:
            q = q.where(RecruitmentResponse.form_ref == form_id)
        if status is not None:
            q = q.where(RecruitmentResponse.status == status)
        if priority is not None:
            q = q.where(RecruitmentResponse.priority == priority)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.where(or_(
                RecruitmentResponse.applicant_name.ilike(pattern),
                RecruitmentResponse.applicant_email.ilike(pattern),
            ))

        total_r = await db.execute(select(func.count()).select_from(q.subquery()))
        total = total_r.scalar_one()

        r = await db.execute(
            q.order_by(RecruitmentResponse.submitted_at.desc()).offset(skip).limit(limit)
        )
        return list(r.scalars().all()), total

    async def count_by_status(self, db: AsyncSession) -> Dict[ResponseStatus, int]:
        """Comptage global par statut, indépendant des filtres de la liste."""
        r = await db.execute(
            select(RecruitmentResponse.status, func.count(RecruitmentResponse.id))
            .group_by(RecruitmentResponse.status)
        )
        return {ResponseStatus(s): n for s, n in r.all()}

    async def get_form_titles(
        self, db: AsyncSession, form_ids: Iterable[str]
    ) -> Dict[str, Dict[str, str]]:
        ids = list({fid for fid in form_ids if fid})
        if not ids:
            return {}
        r = await db.execute(
            select(RecruitmentForm.id, RecruitmentForm.title).where(RecruitmentForm.id.in_(ids))
        )
        return {fid: title for fid, title in r.all()}
