"""
Game Store API
--------------
Storefront service: accounts, game catalog, shopping cart, checkout/orders,
comments and admin management.

Run locally with SQLite:
  DB_URL=sqlite+aiosqlite:///./gamestore.db uvicorn gamestore.main:app --reload
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy import text

from gamestore.api.v1 import router as api_router
from gamestore.core.config import settings
from gamestore.core.errors import StoreError
from gamestore.db.seed import create_schema, seed_admin, seed_genres
from gamestore.db.session import SessionLocal, engine

# ------- logging -------
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("gamestore")

# ------- startup -------
@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_schema(engine)
    async with SessionLocal() as db:
        await seed_genres(db)
        await seed_admin(db)
    log.info("Game Store API ready")
    yield
    await engine.dispose()

app = FastAPI(title="Game Store API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------- Prometheus metrics -------
REQ_COUNT = Counter("api_requests_total", "Total requests", ["path", "method", "status"])
REQ_LAT = Histogram("api_request_latency_seconds", "Latency per endpoint", ["path", "method"])

@app.middleware("http")
async def metrics_mid(request: Request, call_next):
    t0 = time.time()
    status = 500
    try:
        resp = await call_next(request)
        status = resp.status_code
        return resp
    finally:
        # route template, not the raw path, to keep label cardinality bounded
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQ_COUNT.labels(path=path, method=request.method, status=str(status)).inc()
        REQ_LAT.labels(path=path, method=request.method).observe(time.time() - t0)

# ------- errors -------
@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})

# ------- routes -------
app.include_router(api_router, prefix=settings.API_PREFIX)

@app.get("/")
def root():
    return {"name": "Game Store API", "version": app.version, "docs": "/docs"}

@app.get("/health")
async def health():
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        log.warning("Health check failed: %s", e)
        raise HTTPException(status_code=500, detail="database unavailable")
    return {"status": "ok"}

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("gamestore.main:app", host="0.0.0.0", port=8000)
