# app/shared/deps.py
"""
Dépendances FastAPI réutilisables dans tous les routers.
Injectées via Depends(), jamais appelées directement.

Le back-office n'émet pas de session : il vérifie un Bearer JWT signé
avec SECRET_KEY dont le claim "sub" désigne un User.
"""
from typing import Annotated, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import UnauthorizedError
from app.core.security import decode_token
from app.shared.enums import UserRole
from app.shared.models import User

bearer = HTTPBearer(auto_error=False)


async def _get_user_from_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Optional[User]:
    if credentials is None:
        return None
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    result = await db.execute(select(User).where(User.id == str(user_id)))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        return None
    return user


# ── Deps publiques ─────────────────────────────────────────

async def get_optional_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[User]:
    """Utilisateur connecté s'il y en a un ; None sinon (routes publiques)."""
    return await _get_user_from_token(credentials, db)


async def get_current_admin(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Exige le rôle ADMIN. Absence de token, token invalide ou rôle USER → 401."""
    user = await _get_user_from_token(credentials, db)
    if user is None or user.role != UserRole.ADMIN:
        raise UnauthorizedError()
    return user


# ── Type aliases pour les routers ─────────────────────────
DbDep           = Annotated[AsyncSession, Depends(get_db)]
AdminDep        = Annotated[User, Depends(get_current_admin)]
OptionalUserDep = Annotated[Optional[User], Depends(get_optional_user)]
