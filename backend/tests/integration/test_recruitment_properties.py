# tests/integration/test_recruitment_properties.py
"""
Tests d'intégration sur une vraie base SQLite en mémoire (aiosqlite).

Chaque "requête" ouvre sa propre session, comme get_db en production :
pas d'état partagé via l'identity map entre deux appels.

Couverture :
    - Compteur == nombre réel de candidatures après submit / delete
    - Capacité : exactement N dépôts acceptés, puis "Form full"
    - Fenêtre : avant start / après end refusés, dedans accepté
    - Champs obligatoires nommés dans le message d'erreur
    - Suppression en cascade d'un formulaire et de ses candidatures
    - Chevauchement de dates sur un même projet (409), à la création et en mise à jour
    - Lectures admin : currentResponses recompté, jamais le cache
    - Liste publique : filtres statut / rôle / disponibilité traduits en SQL
    - Détection des candidatures orphelines par l'audit
    - Review répétée : restamp, une seule notification par acceptation
    - Notification de dépôt au compte connecté uniquement
    - Scénario complet : capacité 2, suppression, champ manquant
"""
import pytest
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import Base
from app.core.exceptions import ConflictError, StateError, ValidationError
from app.modules.projects.service import ProjectRecruitmentService
from app.modules.recruitment.repository import RecruitmentFormRepository
from app.modules.recruitment.schemas import (
    FormCreateIn, FormListOut, FormOut, FormUpdateIn, PublicFormListOut,
)
from app.modules.recruitment.service import RecruitmentFormService
from app.modules.responses.schemas import ApplicationIn, FormApplicationIn, ReviewIn
from app.modules.responses.service import ResponseService
from app.shared.enums import FormRole, FormStatus, ResponseStatus
from app.shared.models import Notification, ProjectItem, RecruitmentForm, RecruitmentResponse
from tests.conftest import form_payload, make_admin, make_user

pytestmark = pytest.mark.integration

forms     = RecruitmentFormService()
responses = ResponseService()
projects  = ProjectRecruitmentService()
form_repo = RecruitmentFormRepository()

ADMIN = make_admin()


@pytest.fixture
async def sessions(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


# ── Helpers ───────────────────────────────────────────────────────────────────

def iso(value: datetime) -> str:
    return value.isoformat()


def now() -> datetime:
    return datetime.now(timezone.utc)


def may(day: int) -> str:
    return iso(datetime(2025, 5, day, tzinfo=timezone.utc))


async def create_form(sessions, **overrides) -> str:
    data = form_payload(startDate=iso(now() - timedelta(days=1)), endDate=iso(now() + timedelta(days=1)))
    data.update(overrides)
    async with sessions() as db:
        form = await forms.create_form(db, FormCreateIn.model_validate(data), ADMIN)
        return form.id


async def submit(sessions, form_id: str, answers, name: str = "Applicant", user_ref=None) -> str:
    payload = FormApplicationIn.model_validate({
        "formId": form_id,
        "applicantName": name,
        "applicantEmail": f"{name.lower()}@tamil-society.org",
        "answers": answers,
        "userRef": user_ref,
    })
    async with sessions() as db:
        response = await responses.submit_for_form(db, payload)
        return response.id


async def counter_and_count(sessions, form_id: str):
    async with sessions() as db:
        form = await form_repo.get_by_id(db, form_id)
        live = await form_repo.count_responses(db, form_id)
        return form.current_responses, live


async def add_project(sessions, project_id: str = "proj1") -> None:
    async with sessions() as db:
        db.add(ProjectItem(id=project_id, title={"en": "Tamil Classes", "ta": "தமிழ் வகுப்புகள்"}))
        await db.commit()


# ── Compteur ──────────────────────────────────────────────────────────────────

class TestCounterAccuracy:
    @pytest.mark.asyncio
    async def test_compteur_suit_submit_et_delete(self, sessions):
        form_id = await create_form(sessions)
        ids = [await submit(sessions, form_id, {"name": f"N{i}"}) for i in range(4)]

        async with sessions() as db:
            await responses.delete_response(db, ids[0])
        async with sessions() as db:
            await responses.delete_response(db, ids[2])
        await submit(sessions, form_id, {"name": "late"})

        stored, live = await counter_and_count(sessions, form_id)
        assert stored == live == 3

    @pytest.mark.asyncio
    async def test_recount_corrige_la_derive(self, sessions):
        form_id = await create_form(sessions)
        await submit(sessions, form_id, {"name": "A"})
        async with sessions() as db:
            await form_repo.set_response_count(db, form_id, 9)
            await db.commit()

        async with sessions() as db:
            result = await forms.recount(db, form_id)

        assert result == {"form_id": form_id, "previous": 9, "count": 1}
        assert await counter_and_count(sessions, form_id) == (1, 1)

    @pytest.mark.asyncio
    async def test_lectures_exposent_le_compte_reel(self, sessions):
        form_id = await create_form(sessions)
        await submit(sessions, form_id, {"name": "A"})
        await submit(sessions, form_id, {"name": "B"})
        async with sessions() as db:
            await form_repo.set_response_count(db, form_id, 7)
            await db.commit()

        async with sessions() as db:
            listed = FormListOut.model_validate(await forms.list_forms(db)).model_dump(by_alias=True)
        async with sessions() as db:
            single = FormOut.model_validate(await forms.get_form(db, form_id)).model_dump(by_alias=True)

        assert listed["data"][0]["currentResponses"] == 2
        assert single["currentResponses"] == 2
        assert (await counter_and_count(sessions, form_id))[0] == 7

    @pytest.mark.asyncio
    async def test_suppression_orpheline_sans_compteur_negatif(self, sessions):
        async with sessions() as db:
            db.add(RecruitmentResponse(
                id="lost", form_ref="ghost", role_applied=FormRole.VOLUNTEER,
                answers={}, applicant_name="X", applicant_email="x@tamil-society.org",
            ))
            await db.commit()

        async with sessions() as db:
            await responses.delete_response(db, "lost")

        async with sessions() as db:
            assert await db.get(RecruitmentResponse, "lost") is None


# ── Capacité ──────────────────────────────────────────────────────────────────

class TestCapacity:
    @pytest.mark.asyncio
    async def test_exactement_n_depots(self, sessions):
        form_id = await create_form(sessions, maxResponses=3)

        for i in range(3):
            await submit(sessions, form_id, {"name": f"N{i}"})
        for _ in range(2):
            with pytest.raises(StateError, match="Form full"):
                await submit(sessions, form_id, {"name": "extra"})

        assert await counter_and_count(sessions, form_id) == (3, 3)

    @pytest.mark.asyncio
    async def test_cache_perime_ne_depasse_pas_max(self, sessions):
        """Un formulaire lu avant la dernière réservation ne permet pas de dépasser max."""
        form_id = await create_form(sessions, maxResponses=1)
        async with sessions() as db:
            stale = await form_repo.get_by_id(db, form_id)

        await submit(sessions, form_id, {"name": "first"})

        payload = ApplicationIn.model_validate({
            "applicantName": "Second", "applicantEmail": "second@tamil-society.org",
            "answers": {"name": "Second"},
        })
        async with sessions() as db:
            with pytest.raises(StateError, match="Form full"):
                await responses.intake(db, stale, payload)

        assert await counter_and_count(sessions, form_id) == (1, 1)


# ── Fenêtre ───────────────────────────────────────────────────────────────────

class TestWindow:
    @pytest.mark.asyncio
    async def test_pas_encore_ouvert(self, sessions):
        form_id = await create_form(
            sessions,
            startDate=iso(now() + timedelta(days=1)),
            endDate=iso(now() + timedelta(days=2)),
        )
        with pytest.raises(StateError, match="Form not yet open"):
            await submit(sessions, form_id, {"name": "A"})

    @pytest.mark.asyncio
    async def test_clos(self, sessions):
        form_id = await create_form(sessions, startDate=None, endDate=iso(now() - timedelta(days=1)))
        with pytest.raises(StateError, match="Form closed"):
            await submit(sessions, form_id, {"name": "A"})

    @pytest.mark.asyncio
    async def test_inactif(self, sessions):
        form_id = await create_form(sessions, isActive=False)
        with pytest.raises(StateError, match="Form not active"):
            await submit(sessions, form_id, {"name": "A"})

    @pytest.mark.asyncio
    async def test_dans_la_fenetre(self, sessions):
        form_id = await create_form(sessions)
        assert await submit(sessions, form_id, {"name": "A"})


# ── Champs obligatoires ───────────────────────────────────────────────────────

class TestRequiredFields:
    FIELDS = [
        {"id": "name", "label": "Name", "required": True},
        {"id": "city", "label": "City"},
        {"id": "phone", "label": "Phone", "type": "phone", "required": True},
    ]

    @pytest.mark.asyncio
    async def test_champ_manquant_nomme(self, sessions):
        form_id = await create_form(sessions, fields=self.FIELDS)
        with pytest.raises(ValidationError, match="Required field 'phone' is missing"):
            await submit(sessions, form_id, {"name": "A", "city": "Chennai"})
        assert await counter_and_count(sessions, form_id) == (0, 0)

    @pytest.mark.asyncio
    async def test_optionnels_omis(self, sessions):
        form_id = await create_form(sessions, fields=self.FIELDS)
        await submit(sessions, form_id, [{"key": "name", "value": "A"}, {"id": "phone", "value": "0600"}])
        assert await counter_and_count(sessions, form_id) == (1, 1)


# ── Suppression en cascade ────────────────────────────────────────────────────

class TestCascadeDelete:
    @pytest.mark.asyncio
    async def test_formulaire_et_candidatures_supprimes(self, sessions):
        await add_project(sessions)
        form_id = await create_form(sessions, projectItemId="proj1")
        keep_id = await create_form(sessions)
        for i in range(3):
            await submit(sessions, form_id, {"name": f"N{i}"})
        await submit(sessions, keep_id, {"name": "other"})

        async with sessions() as db:
            assert await forms.delete_form(db, form_id) == 3

        async with sessions() as db:
            assert await form_repo.get_by_id(db, form_id) is None
            assert await form_repo.count_responses(db, form_id) == 0
            assert await form_repo.count_responses(db, keep_id) == 1
            project = await db.get(ProjectItem, "proj1")
            assert project.recruitment_form_id is None

        async with sessions() as db:
            page = await projects.get_active_form(db, "proj1")
        assert page["form"] is None
        assert page["status"] == FormStatus.INACTIVE


# ── Chevauchement ─────────────────────────────────────────────────────────────

class TestOverlap:
    @pytest.mark.asyncio
    async def test_conflit_puis_creneau_libre(self, sessions):
        await add_project(sessions)
        existing = await create_form(sessions, projectItemId="proj1", startDate=may(5), endDate=may(15))

        with pytest.raises(ConflictError) as exc:
            await create_form(sessions, projectItemId="proj1", startDate=may(1), endDate=may(10))
        assert [o["id"] for o in exc.value.overlaps] == [existing]

        created = await create_form(sessions, projectItemId="proj1", startDate=may(11), endDate=may(20))

        async with sessions() as db:
            project = await db.get(ProjectItem, "proj1")
            assert project.recruitment_form_id == created
            total = (await db.execute(select(func.count(RecruitmentForm.id)))).scalar_one()
            assert total == 2

    @pytest.mark.asyncio
    async def test_mise_a_jour_refusee_en_chevauchement(self, sessions):
        await add_project(sessions)
        existing = await create_form(sessions, projectItemId="proj1", startDate=may(5), endDate=may(15))
        loose = await create_form(sessions, startDate=may(1), endDate=may(10))

        with pytest.raises(ConflictError) as exc:
            async with sessions() as db:
                await forms.update_form(db, FormUpdateIn.model_validate({"id": loose, "projectItemId": "proj1"}))
        assert [o["id"] for o in exc.value.overlaps] == [existing]

        async with sessions() as db:
            active = await form_repo.get_active_for_project(db, "proj1")
            project = await db.get(ProjectItem, "proj1")
        assert [f.id for f in active] == [existing]
        assert project.recruitment_form_id == existing

        # Créneau libre : le re-pointage passe
        async with sessions() as db:
            await forms.update_form(db, FormUpdateIn.model_validate({
                "id": loose, "projectItemId": "proj1", "startDate": may(16), "endDate": may(20),
            }))
        async with sessions() as db:
            project = await db.get(ProjectItem, "proj1")
        assert project.recruitment_form_id == loose

    @pytest.mark.asyncio
    async def test_reactivation_refusee_en_chevauchement(self, sessions):
        await add_project(sessions)
        dormant = await create_form(sessions, projectItemId="proj1", isActive=False, startDate=may(5), endDate=may(15))
        await create_form(sessions, projectItemId="proj1", startDate=may(1), endDate=may(10))

        with pytest.raises(ConflictError):
            async with sessions() as db:
                await forms.update_form(db, FormUpdateIn.model_validate({"id": dormant, "isActive": True}))

    @pytest.mark.asyncio
    async def test_formulaire_inactif_ignore(self, sessions):
        await add_project(sessions)
        await create_form(sessions, projectItemId="proj1", isActive=False, startDate=may(5), endDate=may(15))
        assert await create_form(sessions, projectItemId="proj1", startDate=may(1), endDate=may(10))

    @pytest.mark.asyncio
    async def test_creation_via_projet(self, sessions):
        await add_project(sessions)
        payload = FormCreateIn.model_validate(form_payload(startDate=None, endDate=None))
        async with sessions() as db:
            form = await projects.create_for_project(db, "proj1", payload, ADMIN)

        async with sessions() as db:
            page = await projects.get_active_form(db, "proj1")
        assert page["form"]["id"] == form.id
        assert page["status"] == FormStatus.OPEN

        submission = ApplicationIn.model_validate({
            "applicantName": "Kavin", "applicantEmail": "kavin@tamil-society.org",
            "answers": {"name": "Kavin"},
        })
        async with sessions() as db:
            await projects.submit(db, "proj1", submission)

        async with sessions() as db:
            stored = (await db.execute(select(RecruitmentResponse))).scalars().one()
        assert stored.project_item_ref == "proj1"
        assert stored.form_ref == form.id


# ── Liste publique ────────────────────────────────────────────────────────────

class TestPublicListing:
    @pytest.mark.asyncio
    async def test_filtres_statut_role_et_disponibilite(self, sessions):
        open_id  = await create_form(sessions)
        crew_id  = await create_form(sessions, role="crew")
        upcoming = await create_form(
            sessions, startDate=iso(now() + timedelta(days=1)), endDate=iso(now() + timedelta(days=2)),
        )
        expired  = await create_form(sessions, startDate=None, endDate=iso(now() - timedelta(days=1)))
        inactive = await create_form(sessions, isActive=False)
        full     = await create_form(sessions, maxResponses=1)
        await submit(sessions, full, {"name": "A"})

        async def ids(**filters):
            async with sessions() as db:
                result = await forms.list_public(db, **filters)
            return {f["id"] for f in result["data"]}

        assert await ids(form_status=FormStatus.OPEN) == {open_id, crew_id}
        assert await ids(form_status=FormStatus.UPCOMING) == {upcoming}
        assert await ids(form_status=FormStatus.EXPIRED) == {expired}
        assert await ids(form_status=FormStatus.INACTIVE) == {inactive}
        assert await ids(form_status=FormStatus.FULL) == {full}
        assert await ids(available=True) == {open_id, crew_id}
        assert await ids(role=FormRole.CREW) == {crew_id}
        assert len(await ids()) == 6

    @pytest.mark.asyncio
    async def test_statut_expose_coherent(self, sessions):
        await create_form(sessions, isActive=False)
        async with sessions() as db:
            result = await forms.list_public(db)
        payload = PublicFormListOut.model_validate(result).model_dump(by_alias=True, mode="json")
        assert payload["data"][0]["status"] == "inactive"
        assert payload["pagination"]["total"] == 1


# ── Audit ─────────────────────────────────────────────────────────────────────

class TestAudit:
    @pytest.mark.asyncio
    async def test_orphelins_et_derive(self, sessions):
        form_id = await create_form(sessions)
        await submit(sessions, form_id, {"name": "A"})
        async with sessions() as db:
            db.add(RecruitmentResponse(
                id="orphan1", form_ref="deleted-form", role_applied=FormRole.CREW,
                answers={}, applicant_name="X", applicant_email="x@tamil-society.org",
            ))
            await form_repo.set_response_count(db, form_id, 4)
            await db.commit()

        async with sessions() as db:
            report = await forms.audit(db)

        assert report["consistent"] is False
        assert report["orphan_response_ids"] == ["orphan1"]
        assert report["mismatches"] == 1

        async with sessions() as db:
            fixed = await forms.recount_all(db)
        assert fixed["corrected"] == 1

        async with sessions() as db:
            report = await forms.audit(db)
        assert report["mismatches"] == 0
        assert report["orphan_response_ids"] == ["orphan1"]


# ── Review ────────────────────────────────────────────────────────────────────

class TestReview:
    @staticmethod
    async def notifications_for(sessions, user_ref: str, tag: str):
        async with sessions() as db:
            r = await db.execute(select(Notification).where(Notification.user_ref == user_ref))
            return [n for n in r.scalars().all() if tag in n.tags]

    @pytest.mark.asyncio
    async def test_restamp_et_notification_unique(self, sessions):
        form_id = await create_form(sessions)
        response_id = await submit(sessions, form_id, {"name": "A"}, user_ref="member1")
        payload = ReviewIn.model_validate({"id": response_id, "status": "approved"})

        async with sessions() as db:
            first = await responses.review(db, payload, ADMIN)
        async with sessions() as db:
            second = await responses.review(db, payload, ADMIN)

        assert first["status"] == second["status"] == ResponseStatus.ACCEPTED
        assert second["reviewed_at"] >= first["reviewed_at"]
        assert second["reviewed_by"] == "admin1"

        approved = await self.notifications_for(sessions, "member1", "approved")
        assert len(approved) == 1
        assert approved[0].action_url == "/profile/applications"
        assert "Volunteers" in approved[0].message["en"]

    @pytest.mark.asyncio
    async def test_nouvelle_acceptation_apres_rejet(self, sessions):
        form_id = await create_form(sessions)
        response_id = await submit(sessions, form_id, {"name": "A"}, user_ref="member2")

        for status in ("accepted", "rejected", "accepted"):
            async with sessions() as db:
                await responses.review(db, ReviewIn.model_validate({"id": response_id, "status": status}), ADMIN)

        assert len(await self.notifications_for(sessions, "member2", "approved")) == 2
        assert len(await self.notifications_for(sessions, "member2", "submitted")) == 1


# ── Notification de dépôt ─────────────────────────────────────────────────────

class TestSubmissionNotification:
    @pytest.mark.asyncio
    async def test_compte_connecte_notifie(self, sessions):
        form_id = await create_form(sessions)
        await submit(sessions, form_id, {"name": "A"}, user_ref="member3")

        async with sessions() as db:
            stored = (await db.execute(select(Notification))).scalars().one()
        assert stored.user_ref == "member3"
        assert stored.title["en"] == "Application Submitted Successfully"
        assert "submitted" in stored.tags
        assert "Volunteers" in stored.message["en"]

    @pytest.mark.asyncio
    async def test_projet_en_lien_d_action(self, sessions):
        await add_project(sessions)
        payload = FormCreateIn.model_validate(form_payload(startDate=None, endDate=None))
        async with sessions() as db:
            await projects.create_for_project(db, "proj1", payload, ADMIN)

        submission = ApplicationIn.model_validate({
            "applicantName": "Kavin", "applicantEmail": "kavin@tamil-society.org",
            "answers": {"name": "Kavin"},
        })
        async with sessions() as db:
            await projects.submit(db, "proj1", submission, make_user(id="member4"))

        async with sessions() as db:
            stored = (await db.execute(select(Notification))).scalars().one()
        assert stored.user_ref == "member4"
        assert stored.action_url == "/projects/proj1"

    @pytest.mark.asyncio
    async def test_anonyme_sans_notification(self, sessions):
        form_id = await create_form(sessions)
        await submit(sessions, form_id, {"name": "A"})

        async with sessions() as db:
            total = (await db.execute(select(func.count(Notification.id)))).scalar_one()
        assert total == 0


# ── Scénario complet ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_scenario_capacite_deux(sessions):
    form_id = await create_form(sessions, maxResponses=2)

    first = await submit(sessions, form_id, {"name": "A"})
    assert (await counter_and_count(sessions, form_id))[0] == 1
    await submit(sessions, form_id, {"name": "B"})
    assert (await counter_and_count(sessions, form_id))[0] == 2

    with pytest.raises(StateError, match="Form full"):
        await submit(sessions, form_id, {"name": "C"})

    async with sessions() as db:
        await responses.delete_response(db, first)
    assert (await counter_and_count(sessions, form_id))[0] == 1

    with pytest.raises(ValidationError, match="Required field 'name' is missing"):
        await submit(sessions, form_id, {})
