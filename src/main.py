# src/main.py

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from src.common.cache import CacheService
from src.common.config import settings
from src.common.database.database import connect_to_db, close_db_connection
from src.common.exceptions import register_exception_handlers
from src.common.llm import LLMService
from src.common.storage import StorageService
from src.common.utils.global_messages import GlobalMessages
from src.common.utils.logger import configure_logging, get_logger
from src.router.routers import API_PREFIX, include_routers

logger = get_logger(__name__)

# Paths under /api that do not need a session credential
PUBLIC_API_PREFIXES = (f"{API_PREFIX}/auth/",)


# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await connect_to_db()
    app.state.cache = CacheService(
        settings.UPSTASH_REDIS_REST_URL,
        settings.UPSTASH_REDIS_REST_TOKEN,
    )
    app.state.storage = StorageService(timeout=settings.STORAGE_TIMEOUT_SECONDS)
    app.state.llm = LLMService(timeout=settings.LLM_TIMEOUT_SECONDS)
    logger.info("application_started", env=settings.APP_ENV)
    yield
    await app.state.llm.close()
    await app.state.storage.close()
    await app.state.cache.close()
    await close_db_connection()


# Initialize FastAPI app with lifespan manager
app = FastAPI(
    title="Healthcare Management API",
    description="Patient records, prescriptions, medical reports, vitals and notifications for admins, doctors and patients",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware for CORS using allowed origins from settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def require_session_credential(request: Request, call_next):
    """Turn away /api calls that carry no session credential at all before any handler runs."""
    path = request.url.path
    if (
        request.method != "OPTIONS"
        and path.startswith(f"{API_PREFIX}/")
        and not path.startswith(PUBLIC_API_PREFIXES)
        and settings.SESSION_COOKIE_NAME not in request.cookies
        and "authorization" not in request.headers
    ):
        return JSONResponse(status_code=401, content={"error": GlobalMessages.UNAUTHORIZED})
    return await call_next(request)


register_exception_handlers(app)

# Include routers from a separate file
include_routers(app)


# Root endpoint
@app.get("/")
async def root():
    return {"name": app.title, "version": app.version, "docs": "/docs"}


@app.get("/health")
async def health():
    return {"status": "ok"}
