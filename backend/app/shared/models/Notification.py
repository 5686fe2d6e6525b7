# app/models/notification.py
"""
Notification in-app (cloche du site), ciblée sur un utilisateur.
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON

from app.core.database import Base, new_id, str_enum, utcnow
from app.shared.enums import NotificationType, ResponsePriority


class Notification(Base):
    __tablename__ = "notifications"

    id       = Column(String(32), primary_key=True, default=new_id)
    user_ref = Column(String(32), nullable=False, index=True)

    title   = Column(JSON, nullable=False)     # {"en": ..., "ta": ...}
    message = Column(JSON, nullable=False)
    type     = Column(str_enum(NotificationType), default=NotificationType.INFO, nullable=False)
    priority = Column(str_enum(ResponsePriority), default=ResponsePriority.MEDIUM, nullable=False)

    action_url  = Column(String, nullable=True)
    action_text = Column(JSON, nullable=True)
    tags        = Column(JSON, nullable=False, default=list)

    is_read    = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self):
        return f"<Notification id={self.id} user={self.user_ref} type={self.type}>"
