from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import mikrotik_dashboard_router
from app.config import settings
from app.core.errors import (
    DashboardError,
    dashboard_error_handler,
    http_error_handler,
    request_validation_handler,
)
from app.services.connection_pool import connection_pool
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if connection_pool.enabled:
        logger.info(f"MikroTik connection pool enabled ({connection_pool.max_idle_per_router} idle per router)")
    yield
    connection_pool.close_all()


app = FastAPI(title="ISP Router Dashboard API", version="1.0.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(DashboardError, dashboard_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Same dashboard under both URL schemes used by the frontend
app.include_router(mikrotik_dashboard_router, prefix="/api/routers/{router_id}/dashboard")
app.include_router(mikrotik_dashboard_router, prefix="/api/mikrotik-dashboard/{router_id}")


@app.get("/")
def read_root():
    return {"message": "ISP Router Dashboard API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
