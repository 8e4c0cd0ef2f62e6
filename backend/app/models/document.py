from sqlalchemy import JSON, Column, Integer, Text
from app.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(Text, primary_key=True)
    original_filename = Column(Text, nullable=False)
    custom_name = Column(Text, nullable=False)
    stored_path = Column(Text, nullable=False)
    database_name = Column(Text, nullable=False)
    extracted_data = Column(JSON)
    uploaded_at = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="uploaded")
    file_size_bytes = Column(Integer)
    mime_type = Column(Text)
