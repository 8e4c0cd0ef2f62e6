import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import check_integrity, init_db, make_session_factory
from app.routers import csv_imports, documents, forms, public_forms, system, tools
from app.services.errors import NotFoundError, StorageError, ValidationError
from app.services.record_store import RecordStore
from app.utils.filesystem import ensure_data_dirs

logger = logging.getLogger("app")


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_store() -> RecordStore:
    ensure_data_dirs(settings.data_path)
    init_db(settings.db_path)
    check_integrity(settings.db_path)
    return RecordStore(
        make_session_factory(settings.db_path),
        databases=settings.databases,
        public_base_url=settings.public_base_url,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    app.state.store = create_store()
    logger.info("Record store ready at %s", settings.db_path)
    yield


app = FastAPI(
    title="Document Forms",
    description="Document and CSV uploads, CSV-derived web forms and submissions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents.router, prefix=settings.api_prefix)
app.include_router(csv_imports.router, prefix=settings.api_prefix)
app.include_router(forms.router, prefix=settings.api_prefix)
app.include_router(system.router, prefix=settings.api_prefix)
app.include_router(tools.router, prefix=settings.api_prefix)
app.include_router(public_forms.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
