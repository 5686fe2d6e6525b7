# modules/recruitment/service.py
"""
Cycle de vie des formulaires de recrutement (back-office admin).

Flux création :
    1. Validation du payload           (schemas : titre, rôle, champs, dates)
    2. Projet cible existant           (404 sinon)
    3. Chevauchement de fenêtres       (engine/recruitment/overlap → 409,
                                        aussi vérifié en mise à jour)
    4. Insert + re-pointage du projet  (une seule transaction)

Flux suppression :
    candidatures en cascade → unlink projets → formulaire → commit,
    puis nettoyage best-effort des dossiers d'uploads.

Le compteur current_responses est un cache : lectures et listes exposent le
comptage réel, recount() / recount_all() le réécrivent, audit() le contrôle.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utcnow
from app.core.exceptions import ConflictError, DependencyError, NotFoundError, ValidationError
from app.core.logging_config import logger
from app.engine.recruitment import overlap, reconciliation, stats
from app.engine.recruitment.availability import compute_status, window_is_valid
from app.infra import storage
from app.modules.recruitment.repository import RecruitmentFormRepository
from app.modules.recruitment.schemas import (
    DATES_INVALID, FormCreateIn, FormUpdateIn, dump_fields,
)
from app.shared.enums import FormRole, FormStatus
from app.shared.models import RecruitmentForm, User

repo = RecruitmentFormRepository()

OVERLAP_MESSAGE = (
    "Date Conflict: Another active form exists for this project in the selected date range."
)


def _overlap_summary(form: RecruitmentForm) -> Dict[str, Any]:
    return {
        "id":        form.id,
        "title":     form.title,
        "startDate": form.start_date.isoformat() if form.start_date else None,
        "endDate":   form.end_date.isoformat() if form.end_date else None,
    }


def _bilingual(value) -> Optional[Dict[str, str]]:
    return value.model_dump() if value is not None else None


def public_view(form: RecruitmentForm, form_status: FormStatus) -> Dict[str, Any]:
    return {
        "id":                form.id,
        "title":             form.title,
        "description":       form.description,
        "role":              form.role,
        "status":            form_status,
        "fields":            form.fields or [],
        "image":             form.image,
        "start_date":        form.start_date,
        "end_date":          form.end_date,
        "max_responses":     form.max_responses,
        "current_responses": form.current_responses,
    }


class RecruitmentFormService:

    # ── Création ──────────────────────────────────────────────────────────────

    async def create_form(
        self, db: AsyncSession, payload: FormCreateIn, admin: User
    ) -> RecruitmentForm:
        if payload.project_item_id:
            await self._check_project_window(
                db, payload.project_item_id, payload.start_date, payload.end_date
            )

        form = await repo.create(db, {
            "title":              _bilingual(payload.title),
            "description":        _bilingual(payload.description),
            "role":               payload.role,
            "fields":             dump_fields(payload.fields),
            "image":              payload.image,
            "project_item_id":    payload.project_item_id,
            "is_active":          payload.is_active,
            "start_date":         payload.start_date,
            "end_date":           payload.end_date,
            "max_responses":      payload.max_responses,
            "email_notification": payload.email_notification,
            "created_by":         admin.id if admin else None,
        })
        if payload.project_item_id:
            await self._repoint_project(db, form.id, payload.project_item_id)

        await db.commit()
        await db.refresh(form)
        logger.info(f"Recruitment form created: {form.id} (project={form.project_item_id})")
        return form

    async def _check_project_window(
        self,
        db: AsyncSession,
        project_id: str,
        start: Optional[datetime],
        end: Optional[datetime],
        exclude_id: Optional[str] = None,
    ) -> None:
        project = await repo.get_project(db, project_id)
        if not project:
            raise NotFoundError("Project not found")

        existing = await repo.get_active_for_project(db, project_id, exclude_id=exclude_id)
        conflicts = overlap.find_overlaps(start, end, existing, exclude_id=exclude_id)
        if conflicts:
            logger.warning(
                f"Overlap rejected on project {project_id}: {[f.id for f in conflicts]}"
            )
            raise ConflictError(OVERLAP_MESSAGE, [_overlap_summary(f) for f in conflicts])

    async def _repoint_project(
        self, db: AsyncSession, form_id: str, project_id: Optional[str]
    ) -> None:
        """Un formulaire n'est lié qu'à un projet à la fois."""
        await repo.unlink_projects(db, form_id)
        if project_id:
            await repo.link_project(db, project_id, form_id)

    # ── Mise à jour ───────────────────────────────────────────────────────────

    async def update_form(
        self, db: AsyncSession, payload: FormUpdateIn
    ) -> RecruitmentForm:
        form = await repo.get_by_id(db, payload.id)
        if not form:
            raise NotFoundError("Form not found")

        provided = payload.model_dump(exclude_unset=True)
        provided.pop("id", None)

        changes: Dict[str, Any] = {}
        for key in ("role", "image", "is_active", "start_date", "end_date",
                    "max_responses", "email_notification", "project_item_id"):
            if key in provided:
                changes[key] = getattr(payload, key)
        if "title" in provided:
            changes["title"] = _bilingual(payload.title)
        if "description" in provided:
            changes["description"] = _bilingual(payload.description)
        if "fields" in provided:
            changes["fields"] = dump_fields(payload.fields)

        # Fenêtre effective après fusion avec les valeurs stockées
        start = changes.get("start_date", form.start_date)
        end   = changes.get("end_date", form.end_date)
        if not window_is_valid(start, end):
            raise ValidationError(DATES_INVALID)

        # État fusionné revérifié contre les autres formulaires actifs du projet
        project_id = changes.get("project_item_id", form.project_item_id)
        is_active  = changes.get("is_active", form.is_active)
        if project_id and is_active:
            await self._check_project_window(db, project_id, start, end, exclude_id=form.id)

        await repo.apply_changes(db, form, changes)
        if "project_item_id" in changes:
            await self._repoint_project(db, form.id, changes["project_item_id"])

        await db.commit()
        await db.refresh(form)
        logger.info(f"Recruitment form updated: {form.id} ({sorted(changes)})")
        return form

    # ── Suppression ───────────────────────────────────────────────────────────

    async def delete_form(self, db: AsyncSession, form_id: str) -> int:
        """Renvoie le nombre de candidatures supprimées en cascade."""
        form = await repo.get_by_id(db, form_id)
        if not form:
            raise NotFoundError("Form not found")

        response_ids = await repo.get_response_ids(db, form_id)
        deleted = await repo.delete_responses(db, form_id)
        await repo.unlink_projects(db, form_id)
        await repo.delete(db, form)
        await db.commit()
        logger.info(f"Recruitment form deleted: {form_id} ({deleted} responses cascaded)")

        self._cleanup_uploads(storage.form_upload_dir(form_id))
        for response_id in response_ids:
            self._cleanup_uploads(storage.response_upload_dir(response_id))
        return deleted

    def _cleanup_uploads(self, relative: str) -> None:
        try:
            storage.delete_directory(relative)
        except DependencyError as e:
            logger.warning(f"Upload cleanup skipped: {e.message}")

    # ── Lecture ───────────────────────────────────────────────────────────────

    async def list_forms(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        role: Optional[FormRole] = None,
        is_active: Optional[bool] = None,
        project_item_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        forms, total = await repo.list_forms(
            db,
            search=search,
            role=role,
            is_active=is_active,
            project_item_id=project_item_id,
            skip=(page - 1) * limit,
            limit=limit,
        )
        live = await repo.count_responses_by_form(db, [f.id for f in forms])
        global_stats = await repo.get_global_stats(db)

        return {
            "success": True,
            "data": [self._with_live_count(f, live.get(f.id, 0)) for f in forms],
            "stats": {
                "total":             global_stats["total"],
                "active":            global_stats["active"],
                "total_submissions": global_stats["total_submissions"],
                "avg_fields":        stats.average_field_count(global_stats["field_lists"]),
            },
            "pagination": {
                "page":  page,
                "limit": limit,
                "total": total,
                "pages": stats.page_count(total, limit),
            },
        }

    async def get_form(self, db: AsyncSession, form_id: str) -> Dict[str, Any]:
        form = await repo.get_by_id(db, form_id)
        if not form:
            raise NotFoundError("Form not found")
        live = await repo.count_responses(db, form_id)
        return self._with_live_count(form, live)

    async def list_public(
        self,
        db: AsyncSession,
        role: Optional[FormRole] = None,
        form_status: Optional[FormStatus] = None,
        available: bool = False,
        page: int = 1,
        limit: int = 10,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """available=True équivaut à status=open et l'emporte sur status."""
        now = now or utcnow()
        if available:
            form_status = FormStatus.OPEN

        forms, total = await repo.list_public(
            db, now, role=role, form_status=form_status,
            skip=(page - 1) * limit, limit=limit,
        )
        return {
            "success": True,
            "data": [public_view(f, compute_status(f, now)) for f in forms],
            "pagination": {
                "page":  page,
                "limit": limit,
                "total": total,
                "pages": stats.page_count(total, limit),
            },
        }

    def _with_live_count(self, form: RecruitmentForm, live: int) -> Dict[str, Any]:
        return {
            "id":                 form.id,
            "title":              form.title,
            "description":        form.description,
            "role":               form.role,
            "fields":             form.fields or [],
            "project_item_id":    form.project_item_id,
            "image":              form.image,
            "is_active":          form.is_active,
            "start_date":         form.start_date,
            "end_date":           form.end_date,
            "max_responses":      form.max_responses,
            "current_responses":  live,
            "email_notification": form.email_notification,
            "created_by":         form.created_by,
            "created_at":         form.created_at,
            "updated_at":         form.updated_at,
            "status":             compute_status(form),
        }

    # ── Compteur ──────────────────────────────────────────────────────────────

    async def recount(self, db: AsyncSession, form_id: str) -> Dict[str, Any]:
        form = await repo.get_by_id(db, form_id)
        if not form:
            raise NotFoundError("Form not found")

        previous = form.current_responses or 0
        count = await repo.count_responses(db, form_id)
        await repo.set_response_count(db, form_id, count)
        await db.commit()
        await db.refresh(form)

        if previous != count:
            logger.warning(f"Counter drift corrected on form {form_id}: {previous} → {count}")
        return {"form_id": form_id, "previous": previous, "count": count}

    async def recount_all(self, db: AsyncSession) -> Dict[str, Any]:
        forms = await repo.list_all(db)
        live = await repo.count_responses_by_form(db)

        results: List[Dict[str, Any]] = []
        corrected = 0
        for form in forms:
            previous = form.current_responses or 0
            count = live.get(form.id, 0)
            if previous != count:
                await repo.set_response_count(db, form.id, count)
                corrected += 1
            results.append({"form_id": form.id, "previous": previous, "count": count})
        await db.commit()

        logger.info(f"Recount done: {len(forms)} forms, {corrected} corrected")
        return {"forms": len(forms), "corrected": corrected, "results": results}

    async def audit(self, db: AsyncSession) -> Dict[str, Any]:
        forms = await repo.list_all(db)
        live = await repo.count_responses_by_form(db)
        refs = await repo.get_response_refs(db)

        report = reconciliation.build_report(forms, live, refs)
        if not report.is_consistent:
            logger.warning(
                f"Recruitment audit: {len(report.mismatches)} counter mismatches, "
                f"{len(report.orphan_ids)} orphan responses"
            )
        return {
            "consistent": report.is_consistent,
            "forms": [
                {
                    "form_id":  c.form_id,
                    "title":    c.title,
                    "stored":   c.stored,
                    "live":     c.live,
                    "mismatch": c.mismatch,
                }
                for c in report.forms
            ],
            "mismatches": len(report.mismatches),
            "orphan_response_ids": report.orphan_ids,
        }
