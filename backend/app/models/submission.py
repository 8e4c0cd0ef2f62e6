from sqlalchemy import JSON, Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from app.database import Base


class FormSubmission(Base):
    __tablename__ = "form_submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(Text, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False)
    data = Column(JSON, nullable=False)
    submitted_at = Column(Text, nullable=False)
    ip_address = Column(Text)

    form = relationship("Form", back_populates="submissions")
