# modules/responses/service.py
"""
Service des candidatures : dépôt public, review admin, suppression.

Flux dépôt (intake) :
    1. Contrôles d'ouverture   (engine/recruitment/availability, premier motif gagnant)
    2. Normalisation answers   (objet ou liste {key|id, value})
    3. Champs obligatoires     (premier manquant dans l'ordre du formulaire)
    4. Réservation d'une place (UPDATE conditionnel current < max)
    5. Insert candidature      (même transaction que 4)

Si la réservation échoue (course perdue sur la dernière place), on
rollback et on répond "Form full" : le compteur ne dépasse jamais max.

Effets de bord best-effort (après commit, jamais bloquants) :
    - notification in-app au dépôt (compte connecté) et sur passage à "accepted"
    - suppression du dossier d'uploads de la candidature
"""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utcnow
from app.core.exceptions import DependencyError, NotFoundError, StateError, ValidationError
from app.core.logging_config import logger
from app.engine.recruitment import answers as answers_engine
from app.engine.recruitment import availability, stats
from app.infra import notifications, storage
from app.modules.recruitment.repository import RecruitmentFormRepository
from app.modules.responses.repository import ResponseRepository
from app.modules.responses.schemas import ApplicationIn, FormApplicationIn, ReviewIn
from app.shared.enums import ResponsePriority, ResponseStatus
from app.shared.models import RecruitmentForm, RecruitmentResponse, User
from app.shared.vocabulary import ADMIN_STATS_KEYS, response_role_label

repo      = ResponseRepository()
form_repo = RecruitmentFormRepository()

FALLBACK_FORM_TITLE = {"en": "Recruitment", "ta": "Recruitment"}


class ResponseService:

    # ── Dépôt ─────────────────────────────────────────────────────────────────

    async def intake(
        self,
        db: AsyncSession,
        form: RecruitmentForm,
        payload: ApplicationIn,
        user_ref: Optional[str] = None,
        project_item_ref: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RecruitmentResponse:
        reason = availability.submission_block_reason(form, now)
        if reason:
            raise StateError(reason)

        try:
            answers = answers_engine.normalize_answers(payload.answers)
        except ValueError as e:
            raise ValidationError(str(e))

        missing = answers_engine.first_missing_required(form.fields, answers)
        if missing:
            raise ValidationError(answers_engine.missing_required_message(missing))

        reserved = await form_repo.adjust_response_count(db, form.id, +1, capacity_guard=True)
        if not reserved:
            await db.rollback()
            logger.info(f"Submission rejected on form {form.id}: capacity reached concurrently")
            raise StateError(availability.FULL)

        response = await repo.create(db, {
            "form_ref":         form.id,
            "project_item_ref": project_item_ref,
            "role_applied":     form.role,
            "answers":          answers,
            "applicant_name":   payload.applicant_name,
            "applicant_email":  payload.applicant_email,
            "user_ref":         user_ref or payload.user_ref,
            "status":           ResponseStatus.PENDING,
            "priority":         ResponsePriority.MEDIUM,
            "ip_address":       ip_address,
            "user_agent":       user_agent,
            "submitted_at":     now or utcnow(),
        })
        await db.commit()
        logger.info(f"Application {response.id} received on form {form.id}")

        if response.user_ref:
            await self._notify_submitted(db, response, form.title)
        return response

    async def _notify_submitted(
        self,
        db: AsyncSession,
        response: RecruitmentResponse,
        form_title: Optional[Dict[str, str]],
    ) -> None:
        try:
            await notifications.send_application_submitted(
                db, response.user_ref, form_title or FALLBACK_FORM_TITLE,
                project_item_ref=response.project_item_ref,
            )
        except DependencyError as e:
            logger.error(f"Submission notification failed for application {response.id}: {e.message}")
        except Exception as e:
            logger.error(
                f"Unexpected error notifying application {response.id}: {e}", exc_info=True
            )

    async def submit_for_form(
        self,
        db: AsyncSession,
        payload: FormApplicationIn,
        user: Optional[User] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> RecruitmentResponse:
        form = await form_repo.get_by_id(db, payload.form_id)
        if not form:
            raise NotFoundError("Recruitment form not found")
        return await self.intake(
            db, form, payload,
            user_ref=user.id if user else None,
            project_item_ref=form.project_item_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    # ── Review ────────────────────────────────────────────────────────────────

    async def review(self, db: AsyncSession, payload: ReviewIn, admin: User) -> Dict[str, Any]:
        """
        Toutes les transitions sont permises (y compris depuis un état final).
        reviewed_by / reviewed_at sont restampés à chaque appel.
        """
        response = await repo.get_by_id(db, payload.id)
        if not response:
            raise NotFoundError("Response not found")

        previous = response.status
        provided = payload.model_fields_set

        changes: Dict[str, Any] = {}
        if payload.status is not None:
            changes["status"] = payload.status
        if "rating" in provided:
            changes["rating"] = payload.rating
        if "review_notes" in provided:
            changes["review_notes"] = payload.review_notes
        if payload.priority is not None:
            changes["priority"] = payload.priority
        changes["reviewed_by"] = admin.id
        changes["reviewed_at"] = utcnow()

        await repo.apply_changes(db, response, changes)
        await db.commit()
        await db.refresh(response)

        form = await form_repo.get_by_id(db, response.form_ref)
        form_title = form.title if form else None

        if payload.status == ResponseStatus.ACCEPTED and previous != ResponseStatus.ACCEPTED:
            await self._notify_accepted(db, response, form_title, admin)

        return self.to_admin_item(response, form_title)

    async def _notify_accepted(
        self,
        db: AsyncSession,
        response: RecruitmentResponse,
        form_title: Optional[Dict[str, str]],
        admin: User,
    ) -> None:
        if not response.user_ref:
            logger.info(f"Application {response.id} accepted without user account: no notification")
            return
        try:
            await notifications.send_application_approved(
                db, response.user_ref, form_title or FALLBACK_FORM_TITLE, created_by=admin.id
            )
            logger.info(f"Approval notification sent to user {response.user_ref}")
        except DependencyError as e:
            logger.error(f"Approval notification failed for application {response.id}: {e.message}")
        except Exception as e:
            logger.error(
                f"Unexpected error notifying application {response.id}: {e}", exc_info=True
            )

    # ── Suppression ───────────────────────────────────────────────────────────

    async def delete_response(self, db: AsyncSession, response_id: str) -> None:
        response = await repo.get_by_id(db, response_id)
        if not response:
            raise NotFoundError("Response not found")

        form_ref = response.form_ref
        await repo.delete(db, response)
        if form_ref:
            decremented = await form_repo.adjust_response_count(db, form_ref, -1)
            if not decremented:
                logger.warning(f"Orphan application {response_id} deleted (form {form_ref} missing)")
        await db.commit()
        logger.info(f"Application {response_id} deleted")

        try:
            storage.delete_directory(storage.response_upload_dir(response_id))
        except DependencyError as e:
            logger.warning(f"Upload cleanup skipped: {e.message}")

    # ── Liste admin ───────────────────────────────────────────────────────────

    async def list_responses(
        self,
        db: AsyncSession,
        form_id: Optional[str] = None,
        status: Optional[ResponseStatus] = None,
        priority: Optional[ResponsePriority] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        rows, total = await repo.list_responses(
            db,
            form_id=form_id,
            status=status,
            priority=priority,
            search=search,
            skip=(page - 1) * limit,
            limit=limit,
        )
        titles = await repo.get_form_titles(db, [r.form_ref for r in rows])
        by_status = await repo.count_by_status(db)

        stats_out = {"total": sum(by_status.values())}
        for key, stored in ADMIN_STATS_KEYS.items():
            stats_out[key] = by_status.get(stored, 0)

        return {
            "success": True,
            "data": [self.to_admin_item(r, titles.get(r.form_ref)) for r in rows],
            "stats": stats_out,
            "pagination": {
                "page":  page,
                "limit": limit,
                "total": total,
                "pages": stats.page_count(total, limit),
            },
        }

    async def get_response(self, db: AsyncSession, response_id: str) -> Dict[str, Any]:
        response = await repo.get_by_id(db, response_id)
        if not response:
            raise NotFoundError("Response not found")
        titles = await repo.get_form_titles(db, [response.form_ref])
        return self.to_admin_item(response, titles.get(response.form_ref))

    def to_admin_item(
        self, response: RecruitmentResponse, form_title: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        answers = response.answers or {}
        return {
            "id":              response.id,
            "form_id":         response.form_ref,
            "form_title":      form_title,
            "project_item_id": response.project_item_ref,
            "role_applied":    response_role_label(response.role_applied),
            "created_at":      response.submitted_at,
            "submitter_name":  response.applicant_name,
            "submitter_email": response.applicant_email,
            "submitter_phone": answers.get("phone"),
            "status":          response.status,
            "priority":        response.priority,
            "rating":          response.rating,
            "review_notes":    response.review_notes,
            "reviewed_by":     response.reviewed_by,
            "reviewed_at":     response.reviewed_at,
            "user_ref":        response.user_ref,
            "responses":       answers,
            "attachments":     [],
            "ip_address":      response.ip_address,
            "user_agent":      response.user_agent,
        }
