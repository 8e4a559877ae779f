"""Forum domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...security_utils import sanitize_html
from ...shared.pagination import PaginationMeta
from ...shared.validators import clean_string_list


class ForumPostCreate(BaseModel):
    """Author details come from the authenticated account"""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    category: str = Field("General", min_length=1, max_length=100)
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "category")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Cannot be blank")
        return v

    @field_validator("content")
    @classmethod
    def clean_content(cls, v):
        v = sanitize_html(v)
        if not v:
            raise ValueError("Content cannot be empty")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return clean_string_list([tag.lower() for tag in v], max_items=10)


class ForumPostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[list[str]] = None

    @field_validator("title", "category")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Cannot be blank")
        return v

    @field_validator("content")
    @classmethod
    def clean_content(cls, v):
        if v is None:
            return v
        v = sanitize_html(v)
        if not v:
            raise ValueError("Content cannot be empty")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        if v is None:
            return v
        return clean_string_list([tag.lower() for tag in v], max_items=10)


class ForumPostResponse(BaseModel):
    id: int
    title: str
    content: str
    author_name: str
    author_email: str
    author_avatar: Optional[str] = None
    category: str
    tags: list[str] = []
    vote_count: int
    view_count: int
    is_active: bool
    is_pinned: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ForumPostListResponse(BaseModel):
    posts: list[ForumPostResponse]
    pagination: PaginationMeta


class CategoryPost(BaseModel):
    id: int
    title: str
    author_name: str
    vote_count: int
    created_at: Optional[datetime] = None


class ForumCategorySummary(BaseModel):
    category: str
    count: int
    total_votes: int
    total_views: int
    recent_posts: list[CategoryPost]
