# app/core/exceptions.py
"""
Exceptions métier du pipeline de recrutement.

Chaque classe porte son code HTTP : les handlers de app.main les
convertissent en {"success": false, "error": "..."} sans que les routers
aient à les intercepter.

    ValidationError   400  entrée malformée / réponse obligatoire absente
    StateError        400  formulaire inactif, hors fenêtre ou complet
    UnauthorizedError 401  session admin absente ou invalide
    NotFoundError     404  formulaire / candidature / projet introuvable
    ConflictError     409  chevauchement de dates sur un même projet
    DependencyError   500  notification ou nettoyage fichiers en échec,
                           toujours rattrapée et loggée par les services
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, **self.details}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class StateError(AppError):
    status_code = 400
    code = "INVALID_STATE"


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"

    def __init__(self, message: str, overlaps: List[Dict[str, Any]]):
        super().__init__(message, details={"overlaps": overlaps})
        self.overlaps = overlaps


class DependencyError(AppError):
    code = "DEPENDENCY_FAILED"
