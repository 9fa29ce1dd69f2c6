import uvicorn
from fastapi import FastAPI

from careerfair.config import get_settings
from careerfair.db import init_db
from careerfair.errors import register_exception_handlers
from careerfair.logging_config import app_logger
from careerfair.routers import appointments, companies, slots, stats

settings = get_settings()

app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0")
register_exception_handlers(app)

app.include_router(companies.router, prefix="/companies", tags=["companies"])
app.include_router(slots.router, prefix="/slots", tags=["slots"])
app.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
app.include_router(stats.router, prefix="/stats", tags=["stats"])


@app.on_event("startup")
def on_startup():
    if get_settings().SKIP_DB_INIT:
        return
    init_db()
    app_logger.info("Database ready")


@app.get("/")
def root():
    return {"ok": True, "service": settings.SERVICE_NAME}


def run():
    uvicorn.run("careerfair.main:app", host=settings.HOST, port=settings.PORT)

