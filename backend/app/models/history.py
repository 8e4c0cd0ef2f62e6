from sqlalchemy import JSON, Column, Integer, Text
from app.database import Base


class HistoryEntry(Base):
    __tablename__ = "history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(Text, nullable=False)
    action = Column(Text, nullable=False)
    database_name = Column(Text)
    timestamp = Column(Text, nullable=False)
    details = Column(JSON)
