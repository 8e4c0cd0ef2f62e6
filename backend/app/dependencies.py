from fastapi import Request

from app.services.record_store import RecordStore


def get_store(request: Request) -> RecordStore:
    return request.app.state.store
