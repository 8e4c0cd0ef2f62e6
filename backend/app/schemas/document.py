from typing import Any

from pydantic import BaseModel


class ExtractionMetadata(BaseModel):
    file_type: str
    processed: bool
    extracted_at: str | None = None
    length: int | None = None
    row_count: int | None = None
    column_count: int | None = None
    error: str | None = None


class ExtractionResult(BaseModel):
    text: str | None = None
    headers: list[str] | None = None
    rows: list[dict[str, Any]] | None = None
    metadata: ExtractionMetadata


class DocumentCreate(BaseModel):
    original_filename: str
    custom_name: str | None = None
    stored_path: str | None = None
    database_name: str | None = None
    extracted_data: ExtractionResult | None = None
    file_size_bytes: int | None = None
    mime_type: str | None = None


class DocumentResponse(BaseModel):
    id: str
    original_filename: str
    custom_name: str
    stored_path: str
    database_name: str
    extracted_data: ExtractionResult | None
    uploaded_at: str
    status: str
    file_size_bytes: int | None
    mime_type: str | None
