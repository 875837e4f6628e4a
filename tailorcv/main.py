"""
FastAPI application entry point
"""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from tailorcv.app.api.v1.ai.routes import router as ai_router
from tailorcv.app.api.v1.groups.routes import router as groups_router
from tailorcv.app.api.v1.payment.routes import router as billing_router
from tailorcv.app.api.v1.resumes.routes import router as resumes_router
from tailorcv.app.api.v1.usage.routes import router as usage_router
from tailorcv.app.core.config import settings
from tailorcv.app.core.exceptions import QuotaExceeded, TailorCVError
from tailorcv.app.core.logging_config import get_logger, setup_logging
from tailorcv.app.core.monitoring import capture_error
from tailorcv.app.db.base import Base
from tailorcv.app.db.session import engine
from tailorcv.app.utils import cache

# Import models so they register with Base.metadata
import tailorcv.app.models  # noqa: F401

setup_logging()
logger = get_logger("main")

# Create database tables
try:
    Base.metadata.create_all(bind=engine)
except SQLAlchemyError as e:
    logger.error("Database error: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await cache.connect()
    yield
    await cache.close()


# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Resume builder with AI tailoring to job descriptions",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TailorCVError)
async def tailorcv_error_handler(request: Request, exc: TailorCVError):
    content = {"detail": exc.message}
    if isinstance(exc, QuotaExceeded):
        content["limit"] = exc.kind
    if exc.status_code >= 500:
        logger.warning("Request failed path=%s error=%s status=%s", request.url.path, type(exc).__name__, exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    capture_error("Unhandled error", exc, {"path": request.url.path, "method": request.method}, "high")
    return JSONResponse(status_code=500, content={"detail": "Something went wrong"})


# Include routers
app.include_router(resumes_router, prefix="/api")
app.include_router(groups_router, prefix="/api")
app.include_router(ai_router, prefix="/api")
app.include_router(usage_router, prefix="/api")
app.include_router(billing_router, prefix="/api")

# Serve locally stored uploads (create dir if missing)
upload_path = Path(settings.upload_dir)
upload_path.mkdir(parents=True, exist_ok=True)
app.mount(f"/{settings.upload_dir}", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/")
def read_root():
    """Root endpoint"""
    return {"message": "TailorCV API", "version": settings.app_version}


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
