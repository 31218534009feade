from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime
from contactflow.database import Base


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    # Standardized 10-digit mobile number
    phone = Column(String(10), unique=True, index=True, nullable=False)
    email = Column(String, nullable=True, index=True)
    tags = Column(JSON, nullable=True)  # list[str]

    # Originating upload file name (or "CSV Import")
    source = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
