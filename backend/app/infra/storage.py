# app/infra/storage.py
"""
Stockage local des fichiers uploadés (simulation S3).

Arborescence sous settings.UPLOAD_DIR :
    recruitment-forms/<form_id>/   images d'en-tête des formulaires
    recruitment/<response_id>/     pièces jointes des candidatures

L'upload lui-même est hors de ce service ; on ne fait ici que le
nettoyage quand un formulaire ou une candidature est supprimé.
"""
import os
import shutil

from app.core.config import settings
from app.core.exceptions import DependencyError

FORM_UPLOADS     = "recruitment-forms"
RESPONSE_UPLOADS = "recruitment"


def _resolve(relative: str) -> str:
    root = os.path.abspath(settings.UPLOAD_DIR)
    path = os.path.abspath(os.path.join(root, relative))
    # Un id forgé ("../..") ne doit jamais sortir du dossier d'uploads
    if os.path.commonpath([root, path]) != root or path == root:
        raise DependencyError(f"Refusing to delete outside upload dir: {relative}")
    return path


def delete_directory(relative: str) -> bool:
    """
    Supprime récursivement un sous-dossier d'uploads.
    Renvoie False si le dossier n'existait pas ; lève DependencyError sur erreur disque.
    """
    path = _resolve(relative)
    if not os.path.isdir(path):
        return False
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise DependencyError(f"Upload cleanup failed for {relative}: {e}")
    return True


def form_upload_dir(form_id: str) -> str:
    return os.path.join(FORM_UPLOADS, form_id)


def response_upload_dir(response_id: str) -> str:
    return os.path.join(RESPONSE_UPLOADS, response_id)
