import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from herbtrace import __version__
from herbtrace.config import settings
from herbtrace.database import engine
from herbtrace.middleware.exceptions import register_exception_handlers
from herbtrace.routers import auth, health, manufacturer, options, stages, trace
from herbtrace.utils.redis import close_redis

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("herbtrace")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("HerbTrace %s starting (%s)", __version__, settings.environment)
    yield
    await close_redis()
    await engine.dispose()
    logger.info("HerbTrace stopped")


app = FastAPI(
    title="HerbTrace",
    description="Herbal supply-chain traceability: collection, transport, processing, lab testing and product batches",
    version=__version__,
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)
app.include_router(auth.router, tags=["auth"])
app.include_router(trace.router, tags=["trace"])
app.include_router(options.router, prefix="/api", tags=["options"])

# Authenticated writes
app.include_router(stages.router, tags=["stages"])
app.include_router(manufacturer.router, prefix="/api", tags=["manufacturer"])
