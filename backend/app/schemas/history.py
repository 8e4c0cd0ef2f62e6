from typing import Any

from pydantic import BaseModel


class HistoryResponse(BaseModel):
    id: int
    entity_type: str
    action: str
    database_name: str | None
    timestamp: str
    details: dict[str, Any] | None
