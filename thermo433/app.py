import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from thermo433.settings import settings

# Configure logging level - WARNING and above by default
# Override with THERMO_LOG_LEVEL env var (DEBUG, INFO, WARNING, ERROR)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.WARNING),
    format='%(levelname)s: %(message)s'
)

from thermo433.core.store.reading_store import ReadingStore

from thermo433.api.http.routes_health import router as health_router
from thermo433.api.http.routes_readings import bind as bind_readings


# ------------------------------------------------------------
# Store factory
# ------------------------------------------------------------
def make_store() -> ReadingStore:
    return ReadingStore(
        settings.DATA_DIR,
        record_ttl_days=settings.RECORD_TTL_DAYS,
        aggregate_ttl_days=settings.AGGREGATE_TTL_DAYS,
        dedup_delta_s=settings.DEDUP_DELTA_S,
    )


# ------------------------------------------------------------
# App factory
# ------------------------------------------------------------
def create_app(store: ReadingStore = None) -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = store or make_store()
    app.state.store = store

    app.include_router(health_router)
    app.include_router(bind_readings(store))

    return app


# ------------------------------------------------------------
# Entrypoint
# ------------------------------------------------------------
app = create_app()
