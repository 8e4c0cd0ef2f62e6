from sqlalchemy import JSON, Column, Integer, Text
from sqlalchemy.orm import relationship
from app.database import Base


class Form(Base):
    __tablename__ = "forms"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    fields = Column(JSON, nullable=False)
    database_name = Column(Text, nullable=False)
    web_link = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    source = Column(Text, nullable=False, default="manual")
    submission_count = Column(Integer, nullable=False, default=0)

    submissions = relationship("FormSubmission", back_populates="form", passive_deletes=True)
