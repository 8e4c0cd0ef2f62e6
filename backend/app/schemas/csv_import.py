from typing import Any

from pydantic import BaseModel


class CsvImportResponse(BaseModel):
    id: str
    filename: str
    headers: list[str]
    rows: list[dict[str, Any]]
    uploaded_at: str
    form_generated: bool


class CsvUploadResponse(BaseModel):
    csv_id: str
    filename: str
    headers: list[str]
    row_count: int
    can_generate_form: bool
