from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from app.dependencies import get_store
from app.schemas.form import FormCreate, FormFromCsvRequest, FormResponse, FormUpdate
from app.schemas.submission import FormSubmissionsResponse, SubmissionResponse
from app.services.record_store import RecordStore

router = APIRouter(prefix="/forms", tags=["forms"])


@router.post("", response_model=FormResponse, status_code=201)
async def create_form(req: FormCreate, store: RecordStore = Depends(get_store)):
    return store.create_form(req.name, req.fields, req.database_name)


@router.post("/from-csv", response_model=FormResponse, status_code=201)
async def generate_form_from_csv(req: FormFromCsvRequest, store: RecordStore = Depends(get_store)):
    return store.derive_form_from_csv(req.csv_id, req.database_name)


@router.get("", response_model=list[FormResponse])
async def list_forms(database_name: str | None = None, store: RecordStore = Depends(get_store)):
    return store.list_forms(database_name=database_name)


@router.get("/{form_id}", response_model=FormResponse)
async def get_form(form_id: str, store: RecordStore = Depends(get_store)):
    form = store.get_form(form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


@router.put("/{form_id}")
async def update_form(form_id: str, req: FormUpdate, store: RecordStore = Depends(get_store)):
    store.update_form(form_id, req.name, req.fields, req.database_name)
    return {"message": "Form updated"}


@router.delete("/{form_id}")
async def delete_form(form_id: str, store: RecordStore = Depends(get_store)):
    store.delete_form(form_id)
    return {"message": "Form deleted"}


@router.get("/{form_id}/submissions", response_model=FormSubmissionsResponse)
async def list_form_submissions(form_id: str, store: RecordStore = Depends(get_store)):
    form = store.get_form(form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    submissions = store.list_submissions(form_id=form_id)
    return FormSubmissionsResponse(form=form, submissions=submissions)


@router.post("/{form_id}/submit", response_model=SubmissionResponse, status_code=201)
async def submit_form(
    form_id: str,
    request: Request,
    payload: dict[str, Any] = Body(...),
    store: RecordStore = Depends(get_store),
):
    client_host = request.client.host if request.client else None
    return store.record_submission(form_id, payload, client_host)
