import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.lane_routes import router as lane_router
from app.api.wizard_routes import router as wizard_router
from app.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("app").setLevel(settings.LOG_LEVEL.upper())

# Initialize the FastAPI application
app = FastAPI(title=settings.APP_NAME)

# in dev we allow ALL origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(wizard_router, prefix="/api")
app.include_router(lane_router)
