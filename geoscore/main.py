# geoscore/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
import logging
from contextlib import asynccontextmanager

from geoscore.api.dependencies import get_request_id, startup_handler, shutdown_handler
from geoscore.api.endpoints import analyze, compare, health
from geoscore.api.middleware import RequestLoggingMiddleware
from geoscore.config.settings import settings
from geoscore.core.exceptions import ContentReadException, CustomHTTPException

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events"""
    logger.info("Starting GEO scoring service...")
    await startup_handler()

    yield

    try:
        await shutdown_handler()
    except Exception as e:
        logger.error(f"Shutdown error: {e}")

app = FastAPI(
    title="GEO Content Scoring",
    description="Scores web content for extraction, readability and citation by AI answer engines",
    version=settings.VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(health.router, tags=["health"])
app.include_router(analyze.router, prefix="/api", tags=["analyze"])
app.include_router(compare.router, prefix="/api", tags=["compare"])

def error_body(request: Request, message: str, error_code: str = None) -> dict:
    return {
        "error": message,
        "error_code": error_code,
        "request_id": get_request_id(request),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

@app.exception_handler(CustomHTTPException)
async def custom_exception_handler(request: Request, exc: CustomHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.detail, exc.error_code)
    )

@app.exception_handler(ContentReadException)
async def content_read_exception_handler(request: Request, exc: ContentReadException):
    logger.warning(f"Unhandled read failure for {exc.target}: {exc}")
    return JSONResponse(status_code=502, content=error_body(request, str(exc), "READ_FAILURE"))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content=error_body(request, f"Invalid request: {problems}", "VALIDATION_ERROR")
    )

@app.get("/")
async def root():
    return {"message": "GEO Content Scoring", "status": "running", "version": settings.VERSION}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "geoscore.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG
    )
