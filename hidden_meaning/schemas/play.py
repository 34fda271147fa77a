# hidden_meaning/schemas/play.py
from sqlalchemy import Column, String, Integer, DateTime, Text, Index
from sqlalchemy.sql import func
from hidden_meaning.db.base_class import Base

class Play(Base):
    """One started round. Rows are counted per user and day for the play quota."""
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)  # Subject ("sub") from the identity provider
    image_url = Column(Text, nullable=False)
    hidden_meaning = Column(String, nullable=False)
    language = Column(String(2), nullable=False, default="EN")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (Index("ix_plays_user_created", "user_id", "created_at"),)
