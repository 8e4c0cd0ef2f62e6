from fastapi import APIRouter, Depends

from app.dependencies import get_store
from app.schemas.tool import ToolCallRequest, ToolCallResponse, ToolsListResponse
from app.services.record_store import RecordStore
from app.services.tool_service import call_tool, list_tools

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("", response_model=ToolsListResponse)
async def get_tools(store: RecordStore = Depends(get_store)):
    return list_tools(store)


@router.post("/call", response_model=ToolCallResponse)
async def invoke_tool(req: ToolCallRequest, store: RecordStore = Depends(get_store)):
    return call_tool(store, req.name, req.arguments)
