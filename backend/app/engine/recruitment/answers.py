# engine/recruitment/answers.py
"""
Normalisation et contrôle des réponses d'une candidature.

Formats d'entrée acceptés :
    - objet  {field_id: valeur}                 → utilisé tel quel
    - liste  [{key|id: field_id, value: ...}]  → réduit en objet, la clé
      "key" prime sur "id" ; les éléments sans identifiant sont ignorés
      et le dernier doublon l'emporte.

Une réponse obligatoire est "manquante" si absente, None ou chaîne vide
(après strip). False, 0 et [] sont des réponses valides.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, Optional

ANSWERS_TYPE_ERROR = "Answers must be an object or array"


def normalize_answers(raw: Any) -> Dict[str, Any]:
    """Lève ValueError si raw n'est ni un objet ni une liste."""
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, list):
        answers: Dict[str, Any] = {}
        for item in raw:
            if not isinstance(item, dict):
                continue
            key = item.get("key") or item.get("id")
            if not key:
                continue
            answers[str(key)] = item.get("value")
        return answers
    raise ValueError(ANSWERS_TYPE_ERROR)


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def first_missing_required(fields: Iterable[Dict[str, Any]], answers: Dict[str, Any]) -> Optional[str]:
    """Id du premier champ obligatoire (dans l'ordre du formulaire) sans réponse."""
    for field in fields or []:
        if field.get("required") and is_missing(answers.get(field.get("id"))):
            return field.get("id")
    return None


def missing_required_message(field_id: str) -> str:
    return f"Required field '{field_id}' is missing"
