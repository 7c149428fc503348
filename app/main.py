import logging
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from tablesync.prom import REGISTRY
from tablesync.errors.exceptions import WorkflowError
from tablesync.factory import build_dispatcher
from app.dependencies import get_gateway
from app.routers import tables
from app.settings import get_settings
from app.exception_handlers import register_exception_handlers

load_dotenv()

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Run the workflow dispatcher for the lifetime of the app."""
    # Tests (and embedders) may preset a gateway on app.state.
    gateway = getattr(application.state, "gateway", None) or get_gateway()
    dispatcher = build_dispatcher(
        gateway,
        schema=settings.table_schema,
        page_size=settings.page_size,
        metrics_enabled=settings.metrics_enabled,
    )
    application.state.dispatcher = dispatcher
    async with dispatcher:
        logger.info("tablesync dispatcher running", extra={"schema": settings.table_schema})
        yield
    application.state.dispatcher = None


# ----------------------------------------------------------------------------
#  App definition
# ----------------------------------------------------------------------------
app = FastAPI(
    title="tablesync",
    version=settings.app_version,
    description="Keeps an in-memory model of a Postgres schema in sync with the database",
    lifespan=lifespan,
)
register_exception_handlers(app)

app.include_router(tables.router, prefix="/api/v1")


# ----------------------------------------------------------------------------
#  Prometheus Metrics Middleware
# ----------------------------------------------------------------------------
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["path", "method", "status_code"],
    registry=REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Request latency (seconds)",
    ["path", "method"],
    registry=REGISTRY,
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    response: Response = await call_next(request)
    elapsed = time.perf_counter() - start
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    name = getattr(route, "name", None) or path

    REQUEST_COUNT.labels(
        path=name,
        method=request.method,
        status_code=str(getattr(response, "status_code", 500)),
    ).inc()
    REQUEST_LATENCY.labels(path=name, method=request.method).observe(elapsed)
    return response


# ----------------------------------------------------------------------------
#  System Endpoints
# ----------------------------------------------------------------------------
@app.get("/healthz", response_class=PlainTextResponse, tags=["system"])
def healthz() -> str:
    return "ok"


@app.get("/readyz", response_class=PlainTextResponse, tags=["system"])
async def readyz(request: Request) -> str:
    """Ready when the dispatcher runs and the database answers a ping."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None or not dispatcher.running:
        raise HTTPException(status_code=503, detail="not ready")
    try:
        await dispatcher.gateway.ping()
    except WorkflowError as exc:
        logger.warning("Readiness ping failed: %s", exc)
        raise HTTPException(status_code=503, detail="not ready") from exc
    return "ready"


@app.get("/metrics", tags=["system"])
def metrics():
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
