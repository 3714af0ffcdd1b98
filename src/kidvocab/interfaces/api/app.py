import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from kidvocab.core.database import test_database_connection
from kidvocab.core.exceptions import EmptyCatalogError, NotFoundError, OwnershipError
from kidvocab.core.logging_config import configure_logging
from kidvocab.interfaces.api.account_endpoints import account_router
from kidvocab.interfaces.api.catalog_endpoints import catalog_router
from kidvocab.interfaces.api.learner_endpoints import learner_router

app = FastAPI(
    title="KidVocab - English Vocabulary for Kids",
    description="Progress, leveling, missions and daily plans for young English learners",
    version="1.0.0",
)

app.include_router(learner_router)
app.include_router(account_router)
app.include_router(catalog_router)


@app.on_event("startup")
async def setup_logging():
    configure_logging()


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(OwnershipError)
async def ownership_handler(request: Request, exc: OwnershipError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def invalid_value_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(EmptyCatalogError)
async def empty_catalog_handler(request: Request, exc: EmptyCatalogError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/")
async def root():
    return {
        "message": "KidVocab API",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def simple_health_check():
    """Health check that doesn't touch the database."""
    return {
        "status": "healthy",
        "message": "Service is running",
        "environment": os.getenv("APP_ENVIRONMENT", "unknown"),
    }


@app.get("/health/db")
async def database_health_check():
    """Health check that opens a connection."""
    if await test_database_connection():
        return {"status": "healthy", "database": "connected"}
    return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
