import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile

from app.config import settings
from app.utils.filesystem import sanitize_filename


def check_extension(filename: str | None) -> str:
    if not filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    extension = Path(filename).suffix.lower()
    if extension not in settings.allowed_extensions:
        allowed = ", ".join(settings.allowed_extensions)
        raise HTTPException(status_code=400, detail=f"Invalid file type. Allowed: {allowed}")
    return extension


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload in chunks, rejecting it as soon as it passes the size cap."""
    max_bytes = settings.max_upload_bytes
    size = 0
    chunks: list[bytes] = []
    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise HTTPException(status_code=413, detail=f"File too large (max {max_bytes} bytes)")
        chunks.append(chunk)

    content = b"".join(chunks)
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    return content


def store_upload(filename: str, content: bytes, uploads_dir: Path | None = None) -> tuple[Path, int]:
    """Write upload bytes under a unique name. Returns (stored_path, file_size)."""
    target_dir = uploads_dir or settings.uploads_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    stored_path = target_dir / f"{uuid.uuid4()}-{sanitize_filename(filename)}"
    stored_path.write_bytes(content)
    return stored_path, len(content)
