from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime


class ProjectResponse(BaseModel):
    """Project as returned to callers - text fields are always plaintext"""
    id: str
    author_id: str
    title: str
    summary: Optional[str] = None
    cover_image_url: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int
