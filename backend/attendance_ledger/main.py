"""
Point d'entrée principal de l'API du registre de présences.
Démarrage : uvicorn attendance_ledger.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import attendance_ledger.models  # noqa: F401  enregistre les modèles dans Base.metadata avant create_all
from attendance_ledger.config import settings
from attendance_ledger.database import Base, engine
from attendance_ledger.dependencies import get_ledger
from attendance_ledger.routers import records
from attendance_ledger.services.ledger_service import log_attendance_event

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie : crée la table si besoin et abonne le journal aux ajouts du registre."""
    logging.getLogger("attendance_ledger").setLevel(settings.LOG_LEVEL.upper())
    if settings.LEDGER_BACKEND == "sql":
        Base.metadata.create_all(bind=engine)
        logger.info("Table attendance_records prête (%s).", engine.url.render_as_string(hide_password=True))

    # Respecte un éventuel remplacement de dépendance (tests)
    ledger = app.dependency_overrides.get(get_ledger, get_ledger)()
    ledger.subscribe(log_attendance_event)
    logger.info("API démarrée (env=%s, stockage=%s).", settings.ENV, settings.LEDGER_BACKEND)
    yield
    ledger.unsubscribe(log_attendance_event)
    logger.info("API arrêtée.")


app = FastAPI(
    title="Attendance Ledger API",
    description="Registre append-only des présences et absences (empreintes uniquement)",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : l'interface web (hors de ce service) lit le registre depuis le navigateur.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Caller"],
)


app.include_router(records.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées : réponse 500 générique,
    le détail ne part que dans les logs.
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal error occurred."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Attendance Ledger API", "version": "0.1.0"}
