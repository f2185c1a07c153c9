import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clubcomp.database import init_db
from clubcomp.routes import automation, leagues, runtime, tournaments

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Club Competition Scheduler API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
# Match results (bracket propagation)
app.include_router(runtime.router, prefix="/api", tags=["runtime"])
app.include_router(leagues.router, prefix="/api", tags=["leagues"])
app.include_router(automation.router, prefix="/api", tags=["automation"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Registered %d routes", len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": "Club Competition Scheduler API", "status": "healthy"}
