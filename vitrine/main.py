import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from vitrine.config import settings
from vitrine.database import get_db, init_db
from vitrine.logging_config import get_logger, setup_logging
from vitrine.models import WaInstance, WebhookLog
from vitrine.routers import chat, instances, vision, wa_webhook

setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="Vitrine API",
    description="WhatsApp instance management, webhook relay and conversational catalog intake",
    version="0.1.0",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Org-ID",
        "X-Flow-ID",
        "X-Instance-ID",
        "X-Instance-Token",
    ],
)

app.include_router(instances.router)
app.include_router(wa_webhook.router)
app.include_router(chat.router)
app.include_router(vision.router)

app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


def _should_create_tables() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return settings.db_auto_create


@app.on_event("startup")
def create_tables() -> None:
    if not _should_create_tables():
        return
    init_db()
    logger.info("Database tables ensured")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/db-check")
def db_check(db: Session = Depends(get_db)):
    instances_count = db.query(WaInstance).count()
    webhook_events_count = db.query(WebhookLog).count()
    return {
        "status": "ok",
        "wa_instances": instances_count,
        "webhooks_log": webhook_events_count,
    }
