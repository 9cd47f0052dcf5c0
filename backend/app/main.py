import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.core import database
from backend.app.core.config import settings
from backend.app.core.errors import TournamentError
from backend.app.api.admin import router as admin_router
from backend.app.api.bracket import router as bracket_router
from backend.app.api.stats import router as stats_router
from backend.app.api.tournament import router as tournament_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# --- LIFESPAN MANAGER ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.engine is None:
        database.init_engine()
    logger.info("Database engine ready")
    yield
    await database.engine.dispose()
# ------------------------

app = FastAPI(title=settings.title, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Engine errors -> HTTP ---
@app.exception_handler(TournamentError)
async def tournament_error_handler(request: Request, exc: TournamentError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "type": type(exc).__name__},
    )

# Register routers
app.include_router(tournament_router, prefix="/tournament", tags=["Tournament"])
app.include_router(bracket_router, prefix="/bracket", tags=["Bracket"])
app.include_router(stats_router, prefix="/stats", tags=["Stats"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])

@app.get("/health")
async def health():
    return {"status": "ok"}
