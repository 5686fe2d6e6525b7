# modules/projects/repository.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import ProjectItem


class ProjectRepository:

    async def get_by_id(self, db: AsyncSession, project_id: str) -> Optional[ProjectItem]:
        r = await db.execute(select(ProjectItem).where(ProjectItem.id == project_id))
        return r.scalar_one_or_none()
