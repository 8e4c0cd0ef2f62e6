from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from app.dependencies import get_store
from app.schemas.document import DocumentCreate, DocumentResponse
from app.services.extraction_service import extract_document_data
from app.services.record_store import RecordStore
from app.services.upload_service import check_extension, read_upload, store_upload

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    database_name: str = Form(...),
    custom_name: str | None = Form(None),
    store: RecordStore = Depends(get_store),
):
    check_extension(file.filename)
    if database_name not in store.databases:
        raise HTTPException(status_code=400, detail=f"Invalid database_name. Must be one of: {store.databases}")

    content = await read_upload(file)
    stored_path, file_size = store_upload(file.filename, content)
    extracted = extract_document_data(stored_path, file.filename)

    try:
        return store.create_document(DocumentCreate(
            original_filename=file.filename,
            custom_name=custom_name,
            stored_path=str(stored_path),
            database_name=database_name,
            extracted_data=extracted,
            file_size_bytes=file_size,
            mime_type=file.content_type,
        ))
    except Exception:
        stored_path.unlink(missing_ok=True)
        raise


@router.get("", response_model=list[DocumentResponse])
async def list_documents(database_name: str | None = None, store: RecordStore = Depends(get_store)):
    return store.list_documents(database_name=database_name)
