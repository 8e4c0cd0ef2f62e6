from pydantic import BaseModel


class FormField(BaseModel):
    name: str
    label: str
    type: str = "text"
    required: bool = False
    placeholder: str | None = None


class FormCreate(BaseModel):
    name: str | None = None
    fields: list[FormField] | None = None
    database_name: str | None = None


class FormUpdate(BaseModel):
    name: str | None = None
    fields: list[FormField] | None = None
    database_name: str | None = None


class FormFromCsvRequest(BaseModel):
    csv_id: str
    database_name: str | None = None


class FormResponse(BaseModel):
    id: str
    name: str
    fields: list[FormField]
    database_name: str
    web_link: str
    created_at: str
    source: str
    submission_count: int = 0
