from fastapi import APIRouter, Depends, Query

from app.dependencies import get_store
from app.schemas.history import HistoryResponse
from app.services.record_store import RecordStore

router = APIRouter(tags=["system"])


@router.get("/databases")
async def list_databases(store: RecordStore = Depends(get_store)):
    return {"databases": store.databases}


@router.get("/history", response_model=list[HistoryResponse])
async def list_history(limit: int = Query(50, ge=1, le=500), store: RecordStore = Depends(get_store)):
    return store.list_history(limit=limit)
