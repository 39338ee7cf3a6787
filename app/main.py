from __future__ import annotations
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.db.database import init_db
from app.logger import configure_logging, get_service_logger
from app.web.routers import auth, home

configure_logging(settings.LOG_LEVEL)
log = get_service_logger("App")

app = FastAPI(title="VioVio Visual Vocab")

@app.on_event("startup")
def on_startup() -> None:
    init_db()
    if not settings.GEMINI_API_KEY:
        log.warning("startup", "GEMINI_API_KEY is not set; only curated words will resolve")
    log.info("startup", "Ready", db_path=str(settings.DB_PATH), model=settings.GEMINI_MODEL)

app.mount("/static", StaticFiles(directory=str(settings.STATIC_DIR)), name="static")

app.include_router(home.router)
app.include_router(auth.router)
