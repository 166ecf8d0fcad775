from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

import lotobonheur.database as db
from lotobonheur import __version__
from lotobonheur.api_admin_endpoints import router as admin_router
from lotobonheur.api_draw_endpoints import draw_router
from lotobonheur.api_prediction_endpoints import prediction_router
from lotobonheur.draw_schedule import get_next_draw


@asynccontextmanager
async def lifespan(app: FastAPI):
    # On startup
    logger.info("Application startup...")
    try:
        db.initialize_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    yield
    # On shutdown
    logger.info("Application shutdown...")


# --- Application Initialization ---
logger.info("Initializing FastAPI application...")
app = FastAPI(
    title="Loto Bonheur Prediction API",
    description="Heuristic number scoring and ranked predictions for the Loto Bonheur draws.",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# --- API Router ---
api_router = APIRouter(prefix="/api/v1")


@api_router.get("/system/info")
async def get_system_info():
    """Get system information"""
    return {
        "version": __version__,
        "status": "operational",
        "draw_results": db.count_draw_results(),
        "latest_draw_date": db.get_latest_draw_date(),
        "next_draw": get_next_draw(),
    }


# Simple health endpoint without prefix for easy access
@app.get("/health")
async def health():
    """Simple health check"""
    return {"status": "ok", "timestamp": datetime.now().isoformat(), "version": __version__}


# --- Application Mounting ---
app.include_router(api_router)
app.include_router(admin_router)
app.include_router(prediction_router, prefix="/api/v1/predictions", tags=["predictions"])
app.include_router(draw_router, prefix="/api/v1/draws", tags=["draws"])
