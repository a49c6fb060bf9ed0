"""
Knowledge Base DTOs
===================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from helpdesk.config import ArticleVisibility


class ArticleCreateRequest(BaseModel):
    """Request model for POST /kb."""
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    visibility: ArticleVisibility = Field(default=ArticleVisibility.PUBLIC)


class ArticleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    visibility: ArticleVisibility
    author_id: str
    created_at: datetime

    @field_serializer("tags")
    def sort_tags(self, tags: List[str]) -> List[str]:
        return sorted(tags)


class CategoryResponse(BaseModel):
    name: str
    article_count: int
