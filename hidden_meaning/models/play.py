# hidden_meaning/models/play.py
from pydantic import BaseModel
from datetime import datetime

class PlayPublic(BaseModel):
    id: int
    image_url: str
    hidden_meaning: str
    language: str
    created_at: datetime

    class Config:
        from_attributes = True

class QuotaStatus(BaseModel):
    plays_today: int
    daily_limit: int
    remaining: int
