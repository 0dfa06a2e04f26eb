from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class ChapterVersionResponse(BaseModel):
    id: str
    chapter_id: str
    version_number: int
    raw_content: str
    word_count: int
    is_active: bool
    upload_date: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
