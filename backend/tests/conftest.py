# tests/conftest.py
"""
Fixtures et factories partagées sur l'ensemble de la suite de tests.

Quatre couches :
    1. Engine      : fonctions pures, aucun mock nécessaire
    2. Service     : mocks AsyncSession + repos via pytest-mock
    3. Router      : httpx.AsyncClient + dependency_overrides FastAPI
    4. Integration : vraie base SQLite en mémoire (aiosqlite)
"""
import os

# Avant tout import de app.* : Settings() exige ces variables
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from types import SimpleNamespace
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import app
from app.core.database import get_db
from app.shared.deps import get_current_admin
from app.shared.enums import (
    FormRole, ResponsePriority, ResponseStatus, UserRole,
)

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


# ── Factories de modèles ORM (SimpleNamespace, léger, sans ORM) ──────────────

def make_user(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "user1",
        "email": "user@test.com",
        "name": "Test User",
        "role": UserRole.USER,
        "is_active": True,
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_admin(**kwargs) -> SimpleNamespace:
    defaults = {"id": "admin1", "email": "admin@tls.org", "name": "Admin", "role": UserRole.ADMIN}
    defaults.update(kwargs)
    return make_user(**defaults)


def make_field(field_id: str = "name", required: bool = True, **kwargs) -> dict:
    field = {
        "id": field_id,
        "label": {"en": field_id.title(), "ta": field_id.title()},
        "type": "text",
        "required": required,
        "order": 1,
    }
    field.update(kwargs)
    return field


def make_form(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "form1",
        "title": {"en": "Volunteers 2025", "ta": "தன்னார்வலர்கள் 2025"},
        "description": {"en": "Help us", "ta": "உதவுங்கள்"},
        "role": FormRole.VOLUNTEER,
        "fields": [make_field("name")],
        "image": None,
        "project_item_id": None,
        "is_active": True,
        "start_date": NOW - timedelta(days=1),
        "end_date": NOW + timedelta(days=1),
        "max_responses": None,
        "current_responses": 0,
        "email_notification": False,
        "created_by": "admin1",
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_response(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "resp1",
        "form_ref": "form1",
        "project_item_ref": None,
        "role_applied": FormRole.VOLUNTEER,
        "answers": {"name": "Kavin"},
        "applicant_name": "Kavin",
        "applicant_email": "kavin@test.com",
        "user_ref": None,
        "status": ResponseStatus.PENDING,
        "priority": ResponsePriority.MEDIUM,
        "rating": None,
        "review_notes": None,
        "reviewed_by": None,
        "reviewed_at": None,
        "ip_address": "127.0.0.1",
        "user_agent": "pytest",
        "submitted_at": NOW,
        "updated_at": NOW,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_project(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "proj1",
        "type": "project",
        "title": {"en": "Tamil Classes", "ta": "தமிழ் வகுப்புகள்"},
        "status": "active",
        "recruitment_form_id": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def form_payload(**kwargs) -> dict:
    """Corps JSON camelCase minimal valide pour POST /recruitment-forms."""
    payload = {
        "title": {"en": "Volunteers", "ta": "தன்னார்வலர்கள்"},
        "role": "volunteer",
        "fields": [{"id": "name", "label": "Name", "type": "text", "required": True}],
    }
    payload.update(kwargs)
    return payload


# ── DB mock factory ───────────────────────────────────────────────────────────

def make_async_db() -> AsyncMock:
    """
    AsyncMock simulant une AsyncSession SQLAlchemy.
    flush() pose un id sur les objets ajoutés qui n'en ont pas.
    """
    db = AsyncMock(spec=AsyncSession)
    added_objects: list = []

    def capture_add(obj):
        added_objects.append(obj)

    db.add = MagicMock(side_effect=capture_add)

    async def flush_side_effect():
        for i, obj in enumerate(added_objects):
            if not getattr(obj, "id", None):
                try:
                    obj.id = f"id{i + 1}"
                except (AttributeError, TypeError):
                    pass

    db.flush = AsyncMock(side_effect=flush_side_effect)
    db.refresh = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.close = AsyncMock()
    db.added = added_objects

    return db


# ── Fixtures HTTP (httpx.AsyncClient + dependency_overrides) ─────────────────

@pytest.fixture
async def client():
    """Client sans auth : endpoints publics, ou vérification du 401 admin."""
    mock_db = make_async_db()
    app.dependency_overrides[get_db] = lambda: mock_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client():
    """Client authentifié comme administrateur."""
    mock_db = make_async_db()
    mock_admin = make_admin()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_admin] = lambda: mock_admin
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
