from sqlalchemy import JSON, Boolean, Column, Text
from app.database import Base


class CsvImport(Base):
    __tablename__ = "csv_imports"

    id = Column(Text, primary_key=True)
    filename = Column(Text, nullable=False)
    headers = Column(JSON, nullable=False)
    rows = Column(JSON, nullable=False)
    uploaded_at = Column(Text, nullable=False)
    form_generated = Column(Boolean, nullable=False, default=False)
