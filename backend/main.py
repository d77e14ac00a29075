"""PDF document service FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from models.base import async_engine, create_tables, dispose_engine
from storage import BlobStore
from api import admin, documents

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Document Service API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents.router)
app.include_router(admin.router)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as ``{success: false, error: ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Server error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


@app.on_event("startup")
async def startup():
    """Create database tables and open the blob store."""
    logger.info("Creating database tables...")
    await create_tables()

    blob_store = BlobStore(settings.upload_dir)
    blob_store.ensure_root()
    app.state.blob_store = blob_store
    logger.info("Uploads directory: %s", blob_store.root)


@app.on_event("shutdown")
async def shutdown():
    await dispose_engine()


@app.get("/health")
async def health():
    return {
        "status": "OK",
        "message": "Server is running",
        "database": async_engine.dialect.name,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port)
