# app/infra/notifications.py
"""
Notifications in-app envoyées au candidat.

Deux notifications métier :
    - candidature déposée  (compte connecté uniquement)
    - candidature acceptée (passage à "accepted")

Chacune est écrite dans sa propre transaction, après le commit de l'opération
métier : un échec ici lève DependencyError et le dépôt ou la review reste acquis.
"""
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DependencyError
from app.shared.enums import NotificationType, ResponsePriority
from app.shared.models import Notification

APPROVED_TITLE = {
    "en": "Application Approved",
    "ta": "விண்ணப்பம் அங்கீகரிக்கப்பட்டது",
}
APPROVED_ACTION_URL  = "/profile/applications"
APPROVED_ACTION_TEXT = {"en": "View Status", "ta": "நிலையைப் பார்க்க"}

SUBMITTED_TITLE = {
    "en": "Application Submitted Successfully",
    "ta": "விண்ணப்பம் வெற்றிகரமாக சமர்ப்பிக்கப்பட்டது",
}
PROJECT_ACTION_TEXT = {"en": "View Project", "ta": "திட்டத்தைப் பார்க்க"}


def _titles(form_title: Dict[str, str]):
    title_en = form_title.get("en") or ""
    return title_en, form_title.get("ta") or title_en


def approval_message(form_title: Dict[str, str]) -> Dict[str, str]:
    title_en, title_ta = _titles(form_title)
    return {
        "en": f'Your application for "{title_en}" has been approved.',
        "ta": f'"{title_ta}" க்கான உங்கள் விண்ணப்பம் அங்கீகரிக்கப்பட்டது.',
    }


def submission_message(form_title: Dict[str, str]) -> Dict[str, str]:
    title_en, title_ta = _titles(form_title)
    return {
        "en": (
            f'Your application for "{title_en}" has been submitted successfully. '
            "We will review your application and get back to you soon."
        ),
        "ta": (
            f'"{title_ta}" க்கான உங்கள் விண்ணப்பம் வெற்றிகரமாக சமர்ப்பிக்கப்பட்டது. '
            "நாங்கள் உங்கள் விண்ணப்பத்தை மதிப்பாய்வு செய்து விரைவில் உங்களைத் தொடர்பு கொள்வோம்."
        ),
    }


async def _insert(db: AsyncSession, notification: Notification) -> Notification:
    try:
        db.add(notification)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise DependencyError(f"Notification insert failed for user {notification.user_ref}: {e}")
    return notification


async def send_application_approved(
    db: AsyncSession,
    user_ref: str,
    form_title: Dict[str, str],
    created_by: Optional[str] = None,
) -> Notification:
    return await _insert(db, Notification(
        user_ref=user_ref,
        title=APPROVED_TITLE,
        message=approval_message(form_title or {}),
        type=NotificationType.SUCCESS,
        priority=ResponsePriority.HIGH,
        action_url=APPROVED_ACTION_URL,
        action_text=APPROVED_ACTION_TEXT,
        tags=["recruitment", "application", "approved"],
        created_by=created_by,
    ))


async def send_application_submitted(
    db: AsyncSession,
    user_ref: str,
    form_title: Dict[str, str],
    project_item_ref: Optional[str] = None,
) -> Notification:
    """Lien vers le projet si la candidature y est rattachée, sinon vers le suivi."""
    if project_item_ref:
        action_url, action_text = f"/projects/{project_item_ref}", PROJECT_ACTION_TEXT
    else:
        action_url, action_text = APPROVED_ACTION_URL, APPROVED_ACTION_TEXT

    return await _insert(db, Notification(
        user_ref=user_ref,
        title=SUBMITTED_TITLE,
        message=submission_message(form_title or {}),
        type=NotificationType.SUCCESS,
        priority=ResponsePriority.MEDIUM,
        action_url=action_url,
        action_text=action_text,
        tags=["recruitment", "application", "submitted"],
        created_by=user_ref,
    ))
