from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime


class ChapterResponse(BaseModel):
    id: str
    project_id: str
    chapter_no: int
    title: str
    summary: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChapterListResponse(BaseModel):
    chapters: List[ChapterResponse]
    total: int
