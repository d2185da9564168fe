from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey
import uuid

from pkg.db_util.sql_alchemy.declarative_base import Base


class DateModel(Base):
    __tablename__ = "dates"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    rating = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
