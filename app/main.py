import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api_routers.v1 import api_router
from app.features.health.routes.health import router as health_router
from app.platform.config import settings
from app.platform.exceptions import add_exception_handlers
from app.platform.logger import LOG_FORMAT, log_level

# Configure root logging at the configured LOG_LEVEL
logging.basicConfig(level=log_level(), format=LOG_FORMAT)

app = FastAPI(
    title=settings.APP_NAME,
    description="Waitlist, referral and vendor review API for PeerPlates",
    version="1.0.0",
    debug=settings.DEBUG,
)


# Root endpoint for basic info
@app.get("/", tags=["Info"])
def root():
    return {
        "app_name": settings.APP_NAME,
        "description": "Join the PeerPlates waitlist as a consumer or a home-cook vendor.",
        "version": "1.0.0",
        "docs_url": "/docs",
        "api_base": "/api",
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

# Create static directory if it doesn't exist
static_dir = Path("static")
static_dir.mkdir(exist_ok=True)

# Mount static files for serving uploaded certificates
app.mount("/static", StaticFiles(directory="static"), name="static")

app.include_router(health_router)
app.include_router(api_router, prefix="/api")
