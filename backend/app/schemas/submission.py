from typing import Any

from pydantic import BaseModel

from app.schemas.form import FormResponse


class SubmissionResponse(BaseModel):
    id: int
    form_id: str
    data: dict[str, Any]
    submitted_at: str
    ip_address: str | None
    form_name: str | None = None
    database_name: str | None = None


class FormSubmissionsResponse(BaseModel):
    form: FormResponse
    submissions: list[SubmissionResponse]
