from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_path: Path = Path.home() / "DocumentForms"
    # Owning database-names are grouping labels only, not isolation boundaries.
    databases: list[str] = ["customers", "inventory", "orders", "employees"]
    max_upload_bytes: int = 50 * 1024 * 1024  # 50 MiB
    allowed_extensions: list[str] = [".pdf", ".doc", ".docx", ".txt", ".csv"]
    public_base_url: str = "http://localhost:8000"
    api_prefix: str = "/api"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    @property
    def db_path(self) -> Path:
        return self.data_path / "db.sqlite"

    @property
    def uploads_dir(self) -> Path:
        return self.data_path / "uploads"

    model_config = {"env_prefix": "DOCFORMS_"}


settings = Settings()
