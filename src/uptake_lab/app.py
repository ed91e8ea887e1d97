"""FastAPI Application Factory."""

from __future__ import annotations

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from uptake_lab.api.adoption import router as adoption_router
from uptake_lab.api.data import VERSION
from uptake_lab.api.data import router as data_router
from uptake_lab.api.persistency import router as persistency_router
from uptake_lab.config import Settings

logger = logging.getLogger(__name__)


def _configure_logging(level: str = "INFO") -> None:
    """Strukturiertes Logging mit Zeitstempel, Level und Modul-Name."""
    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    root = logging.getLogger("uptake_lab")
    root.setLevel(level.upper())
    # Mehrfaches create_app() (Tests) darf keine doppelten Handler erzeugen
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        root.addHandler(handler)
    # Verhindert doppelte Log-Eintraege bei uvicorn
    root.propagate = False


def create_app() -> FastAPI:
    """Erstellt und konfiguriert die FastAPI-Anwendung."""
    settings = Settings()
    _configure_logging(settings.log_level)

    app = FastAPI(
        title="Uptake Lab API",
        description="Adoptions- und Persistenzkurven: Reihen, Kennzahlen, Szenarien und Fits.",
        version=VERSION,
    )

    # CORS (konfigurierbar via CORS_ORIGINS env variable)
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(data_router)
    app.include_router(adoption_router)
    app.include_router(persistency_router)

    logger.info(
        "Fit-Optionen: Adoption %d Iterationen, Persistenz %d Iterationen",
        settings.adoption_fit_max_iterations,
        settings.survival_fit_max_iterations,
    )
    return app
