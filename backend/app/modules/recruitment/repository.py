# modules/recruitment/repository.py
"""
Accès DB pour les formulaires de recrutement et le lien projet → formulaire.

Règles :
- Aucun commit ici : le service possède la transaction, ce qui permet
  de grouper réservation + insert, ou suppression en cascade + unlink.
- current_responses n'est modifié que par adjust_response_count() et
  set_response_count() (UPDATE atomiques côté base, jamais read-modify-write).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, case, delete, func, not_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.enums import FormRole, FormStatus
from app.shared.models import ProjectItem, RecruitmentForm, RecruitmentResponse


def status_clause(form_status: FormStatus, now: datetime):
    """
    Traduction SQL de compute_status(), même ordre de priorité :
    inactive > full > expired > upcoming > open.
    """
    f = RecruitmentForm
    active   = f.is_active.is_(True)
    full     = and_(f.max_responses.is_not(None), f.max_responses > 0,
                    f.current_responses >= f.max_responses)
    expired  = and_(f.end_date.is_not(None), f.end_date < now)
    upcoming = and_(f.start_date.is_not(None), f.start_date > now)

    if form_status == FormStatus.INACTIVE:
        return f.is_active.is_(False)
    if form_status == FormStatus.FULL:
        return and_(active, full)
    if form_status == FormStatus.EXPIRED:
        return and_(active, not_(full), expired)
    if form_status == FormStatus.UPCOMING:
        return and_(active, not_(full), not_(expired), upcoming)
    return and_(active, not_(full), not_(expired), not_(upcoming))


class RecruitmentFormRepository:

    # ── Lecture ───────────────────────────────────────────────

    async def get_by_id(self, db: AsyncSession, form_id: str) -> Optional[RecruitmentForm]:
        r = await db.execute(select(RecruitmentForm).where(RecruitmentForm.id == form_id))
        return r.scalar_one_or_none()

    async def get_active_for_project(
        self, db: AsyncSession, project_id: str, exclude_id: Optional[str] = None
    ) -> List[RecruitmentForm]:
        q = select(RecruitmentForm).where(
            RecruitmentForm.project_item_id == project_id,
            RecruitmentForm.is_active.is_(True),
        )
        if exclude_id:
            q = q.where(RecruitmentForm.id != exclude_id)
        r = await db.execute(q)
        return list(r.scalars().all())

    def _filtered(
        self,
        search: Optional[str] = None,
        role: Optional[FormRole] = None,
        is_active: Optional[bool] = None,
        project_item_id: Optional[str] = None,
    ):
        q = select(RecruitmentForm)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.where(or_(
                RecruitmentForm.title["en"].as_string().ilike(pattern),
                RecruitmentForm.title["ta"].as_string().ilike(pattern),
                RecruitmentForm.description["en"].as_string().ilike(pattern),
                RecruitmentForm.description["ta"].as_string().ilike(pattern),
            ))
        if role is not None:
            q = q.where(RecruitmentForm.role == role)
        if is_active is not None:
            q = q.where(RecruitmentForm.is_active.is_(is_active))
        if project_item_id:
            q = q.where(RecruitmentForm.project_item_id == project_item_id)
        return q

    async def list_forms(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        role: Optional[FormRole] = None,
        is_active: Optional[bool] = None,
        project_item_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[RecruitmentForm], int]:
        q = self._filtered(search, role, is_active, project_item_id)

        total_r = await db.execute(select(func.count()).select_from(q.subquery()))
        total = total_r.scalar_one()

        r = await db.execute(
            q.order_by(RecruitmentForm.created_at.desc()).offset(skip).limit(limit)
        )
        return list(r.scalars().all()), total

    async def list_all(self, db: AsyncSession) -> List[RecruitmentForm]:
        r = await db.execute(select(RecruitmentForm).order_by(RecruitmentForm.created_at))
        return list(r.scalars().all())

    async def get_global_stats(self, db: AsyncSession) -> Dict[str, Any]:
        """Stats sur l'ensemble des formulaires, indépendamment des filtres."""
        r = await db.execute(
            select(
                func.count(RecruitmentForm.id),
                func.coalesce(func.sum(case((RecruitmentForm.is_active.is_(True), 1), else_=0)), 0),
            )
        )
        total, active = r.one()

        sub_r = await db.execute(select(func.count(RecruitmentResponse.id)))
        fields_r = await db.execute(select(RecruitmentForm.fields))

        return {
            "total":             total,
            "active":            int(active),
            "total_submissions": sub_r.scalar_one(),
            "field_lists":       [row[0] for row in fields_r.all()],
        }

    async def count_responses_by_form(
        self, db: AsyncSession, form_ids: Optional[List[str]] = None
    ) -> Dict[str, int]:
        """Comptage réel {form_id: n} depuis la table des candidatures."""
        q = select(RecruitmentResponse.form_ref, func.count(RecruitmentResponse.id)).group_by(
            RecruitmentResponse.form_ref
        )
        if form_ids is not None:
            if not form_ids:
                return {}
            q = q.where(RecruitmentResponse.form_ref.in_(form_ids))
        r = await db.execute(q)
        return {form_ref: count for form_ref, count in r.all()}

    async def count_responses(self, db: AsyncSession, form_id: str) -> int:
        r = await db.execute(
            select(func.count(RecruitmentResponse.id)).where(RecruitmentResponse.form_ref == form_id)
        )
        return r.scalar_one()

    async def get_response_refs(self, db: AsyncSession) -> Dict[str, str]:
        """{response_id: form_ref} pour toutes les candidatures (audit)."""
        r = await db.execute(select(RecruitmentResponse.id, RecruitmentResponse.form_ref))
        return {rid: ref for rid, ref in r.all()}

    async def get_response_ids(self, db: AsyncSession, form_id: str) -> List[str]:
        r = await db.execute(
            select(RecruitmentResponse.id).where(RecruitmentResponse.form_ref == form_id)
        )
        return list(r.scalars().all())

    async def list_public(
        self,
        db: AsyncSession,
        now: datetime,
        role: Optional[FormRole] = None,
        form_status: Optional[FormStatus] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[List[RecruitmentForm], int]:
        q = self._filtered(role=role)
        if form_status is not None:
            q = q.where(status_clause(form_status, now))

        total_r = await db.execute(select(func.count()).select_from(q.subquery()))
        total = total_r.scalar_one()

        r = await db.execute(
            q.order_by(RecruitmentForm.created_at.desc()).offset(skip).limit(limit)
        )
        return list(r.scalars().all()), total

    # ── Écriture ──────────────────────────────────────────────

    async def create(self, db: AsyncSession, values: Dict[str, Any]) -> RecruitmentForm:
        form = RecruitmentForm(**values, current_responses=0)
        db.add(form)
        await db.flush()
        return form

    async def apply_changes(
        self, db: AsyncSession, form: RecruitmentForm, changes: Dict[str, Any]
    ) -> RecruitmentForm:
        for attr, value in changes.items():
            if hasattr(form, attr):
                setattr(form, attr, value)
        await db.flush()
        return form

    async def delete_responses(self, db: AsyncSession, form_id: str) -> int:
        r = await db.execute(
            delete(RecruitmentResponse)
            .where(RecruitmentResponse.form_ref == form_id)
            .execution_options(synchronize_session=False)
        )
        return r.rowcount or 0

    async def delete(self, db: AsyncSession, form: RecruitmentForm) -> None:
        await db.delete(form)
        await db.flush()

    # ── Compteur ──────────────────────────────────────────────

    async def adjust_response_count(
        self, db: AsyncSession, form_id: str, delta: int, capacity_guard: bool = False
    ) -> bool:
        """
        current_responses += delta, jamais en dessous de 0.

        capacity_guard=True : l'incrément n'a lieu que si
        max_responses IS NULL OR current_responses < max_responses,
        évalué par la base dans le WHERE. Renvoie False si aucune ligne
        n'a été modifiée (formulaire absent ou complet).
        """
        new_value = RecruitmentForm.current_responses + delta
        stmt = (
            update(RecruitmentForm)
            .where(RecruitmentForm.id == form_id)
            .values(current_responses=case((new_value < 0, 0), else_=new_value))
            .execution_options(synchronize_session=False)
        )
        if capacity_guard:
            stmt = stmt.where(or_(
                RecruitmentForm.max_responses.is_(None),
                RecruitmentForm.current_responses < RecruitmentForm.max_responses,
            ))
        r = await db.execute(stmt)
        return (r.rowcount or 0) > 0

    async def set_response_count(self, db: AsyncSession, form_id: str, count: int) -> bool:
        r = await db.execute(
            update(RecruitmentForm)
            .where(RecruitmentForm.id == form_id)
            .values(current_responses=max(count, 0))
            .execution_options(synchronize_session=False)
        )
        return (r.rowcount or 0) > 0

    # ── Lien projet ───────────────────────────────────────────

    async def get_project(self, db: AsyncSession, project_id: str) -> Optional[ProjectItem]:
        r = await db.execute(select(ProjectItem).where(ProjectItem.id == project_id))
        return r.scalar_one_or_none()

    async def unlink_projects(self, db: AsyncSession, form_id: str) -> int:
        """Efface le pointeur de tous les projets qui référencent ce formulaire."""
        r = await db.execute(
            update(ProjectItem)
            .where(ProjectItem.recruitment_form_id == form_id)
            .values(recruitment_form_id=None)
            .execution_options(synchronize_session=False)
        )
        return r.rowcount or 0

    async def link_project(self, db: AsyncSession, project_id: str, form_id: str) -> bool:
        r = await db.execute(
            update(ProjectItem)
            .where(ProjectItem.id == project_id)
            .values(recruitment_form_id=form_id)
            .execution_options(synchronize_session=False)
        )
        return (r.rowcount or 0) > 0
