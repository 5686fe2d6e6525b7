# app/models/user.py
"""
Compte utilisateur, réduit à ce dont le back-office recrutement a besoin :
identité du relecteur admin (reviewed_by / created_by) et destinataire
des notifications (user_ref d'une candidature).

L'inscription et l'émission des sessions sont gérées ailleurs.
"""
from sqlalchemy import Column, String, Boolean, DateTime

from app.core.database import Base, new_id, str_enum, utcnow
from app.shared.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id    = Column(String(32), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    name  = Column(String, nullable=False)

    role      = Column(str_enum(UserRole), default=UserRole.USER, nullable=False, index=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
