# app/shared/schemas.py
"""
Briques Pydantic communes à tous les modules.

- ApiModel : clés camelCase en entrée comme en sortie (l'admin UI et les
  pages publiques parlent camelCase), noms snake_case acceptés aussi.
- Bilingual : texte {en, ta} ; une chaîne seule est promue dans les
  deux langues.
"""
from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.database import ensure_utc


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def coerce_bilingual(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        return {"en": text, "ta": text}
    if isinstance(value, dict):
        return {
            "en": str(value.get("en") or "").strip(),
            "ta": str(value.get("ta") or "").strip(),
        }
    return value


class BilingualText(ApiModel):
    en: str = ""
    ta: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.en) and bool(self.ta)

    def longest(self) -> int:
        return max(len(self.en), len(self.ta))


Bilingual = Annotated[BilingualText, BeforeValidator(coerce_bilingual)]


def blank_to_none(value: Any) -> Any:
    """Les formulaires admin envoient "" pour une date ou un id vidé."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    return ensure_utc(value)


class SuccessOut(ApiModel):
    success: bool = True
    message: Optional[str] = None


class PaginationOut(ApiModel):
    page: int
    limit: int
    total: int
    pages: int
