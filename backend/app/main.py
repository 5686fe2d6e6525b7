# main.py
"""
Point d'entrée de l'API recrutement (Tamil Language Society).
Enregistre tous les modules via leurs routers.

Architecture : modules verticaux quasi-autonomes + engine transversal.
Les erreurs métier (AppError) sont converties ici en
{"success": false, "error": "..."} ; les routers ne les interceptent pas.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import AppError
from app.core.logging_config import logger
from app.core.middleware import RequestLoggingMiddleware

from app.modules.recruitment.router import router as recruitment_router
from app.modules.responses.router   import router as responses_router
from app.modules.projects.router    import router as projects_router

INTERNAL_ERROR = "Internal server error"

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(recruitment_router)
app.include_router(responses_router)
app.include_router(projects_router)


# ── Exception handlers ─────────────────────────────────────

def first_error_message(exc: RequestValidationError) -> str:
    """Message du premier échec de validation, sans le préfixe "Value error, "."""
    errors = exc.errors()
    if not errors:
        return "Invalid payload"
    first = errors[0]
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return first.get("msg", "Invalid payload")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": first_error_message(exc)},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"success": False, "error": INTERNAL_ERROR})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"success": False, "error": INTERNAL_ERROR})


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0", "environment": settings.ENVIRONMENT}
