from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from app.dependencies import get_store
from app.services.record_store import RecordStore
from app.services.render_service import render_form_page, render_not_found_page

router = APIRouter(tags=["public"])


@router.get("/form/{form_id}", response_class=HTMLResponse)
async def serve_form(form_id: str, store: RecordStore = Depends(get_store)):
    form = store.get_form(form_id)
    if not form:
        return HTMLResponse(render_not_found_page(), status_code=404)
    return HTMLResponse(render_form_page(form))
