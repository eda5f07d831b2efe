from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from app.core import config
from app.core.database.engine import create_store, get_store, init_db
from app.core.database.store import DocumentStore
from app.core.errors import StoreError
from app.features.permissions.routes import router as permission_router
from app.utils import get_logger


log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared store on startup and dispose of it on shutdown."""
    log.info("Initializing database...")
    store = create_store(config.SQLALCHEMY_DATABASE_URL, timeout=config.STORE_TIMEOUT_SECONDS)
    try:
        await init_db(store, config.PERMISSIONS_COLLECTION)
    except StoreError:
        log.exception("Database initialization failed, refusing to start")
        await store.close()
        raise
    app.state.store = store
    log.info("Database initialized successfully")
    yield
    log.info("Shutting down, closing database connections")
    await store.close()


log.info("Initializing server")
app = FastAPI(
    title="Feature Access API",
    description="Per-user feature access flags",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[config.RATE_LIMIT] if config.RATE_LIMIT else [],
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.app.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.RATE_LIMIT:
    log.warning("Rate limiting every route to %s per client", config.RATE_LIMIT)
    app.add_middleware(SlowAPIMiddleware)
if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.get("/")
async def root():
    """Root endpoint - liveness check."""
    return {"title": "Feature Access API"}


@app.get("/health")
async def health(store: DocumentStore = Depends(get_store)):
    """Readiness check including store connectivity."""
    if not await store.health_check():
        return JSONResponse({"status": "unavailable"}, status_code=503)
    return {"status": "healthy"}


# Feature permission routes
app.include_router(permission_router, tags=["feature"])
