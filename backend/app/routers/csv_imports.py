import csv

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.dependencies import get_store
from app.schemas.csv_import import CsvImportResponse, CsvUploadResponse
from app.services.extraction_service import parse_csv
from app.services.record_store import RecordStore
from app.services.upload_service import check_extension, read_upload, store_upload

router = APIRouter(prefix="/csv-imports", tags=["csv"])


@router.post("", response_model=CsvUploadResponse, status_code=201)
async def upload_csv(file: UploadFile = File(...), store: RecordStore = Depends(get_store)):
    if check_extension(file.filename) != ".csv":
        raise HTTPException(status_code=400, detail="Only .csv files can be imported")

    content = await read_upload(file)
    stored_path, _ = store_upload(file.filename, content)
    try:
        parsed = parse_csv(stored_path)
    except (UnicodeDecodeError, csv.Error) as exc:
        stored_path.unlink(missing_ok=True)
        raise HTTPException(status_code=400, detail=f"Could not parse CSV: {exc}") from exc

    record = store.create_csv_import(file.filename, parsed.headers, parsed.rows)
    return CsvUploadResponse(
        csv_id=record.id,
        filename=record.filename,
        headers=record.headers,
        row_count=len(record.rows),
        can_generate_form=len(record.headers) > 0,
    )


@router.get("", response_model=list[CsvImportResponse])
async def list_csv_imports(store: RecordStore = Depends(get_store)):
    return store.list_csv_imports()


@router.get("/{csv_id}", response_model=CsvImportResponse)
async def get_csv_import(csv_id: str, store: RecordStore = Depends(get_store)):
    record = store.get_csv_import(csv_id)
    if not record:
        raise HTTPException(status_code=404, detail="CSV import not found")
    return record
