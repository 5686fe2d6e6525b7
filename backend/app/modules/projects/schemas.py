# app/modules/projects/schemas.py
from typing import Optional

from app.modules.recruitment.schemas import PublicFormOut
from app.shared.enums import FormStatus
from app.shared.schemas import ApiModel


class ProjectRecruitmentOut(ApiModel):
    success: bool = True
    form: Optional[PublicFormOut] = None
    status: FormStatus
    message: Optional[str] = None


class ProjectSubmitOut(ApiModel):
    ok: bool = True
