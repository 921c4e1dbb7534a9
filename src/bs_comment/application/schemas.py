"""Pydantic schemas for bs_comment API."""

from pydantic import BaseModel, Field, field_validator

from src.bs_comment.domain.models import Comment
from src.bs_common.pagination import Pagination


class CommentBody(BaseModel):
    """Body of POST /books/{id}/comments — the book comes from the path."""

    content: str = Field(..., min_length=5, max_length=2000)
    rating: int | None = Field(None, ge=1, le=5)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 5:
            raise ValueError("Comment must be at least 5 characters long")
        return v


class CreateCommentRequest(CommentBody):
    book_id: str | None = None


class UpdateCommentRequest(BaseModel):
    content: str | None = Field(None, min_length=5, max_length=2000)
    rating: int | None = Field(None, ge=1, le=5)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if len(v) < 5:
            raise ValueError("Comment must be at least 5 characters long")
        return v


class CommentResponse(BaseModel):
    id: str
    user_id: str
    user_name: str
    book_id: str | None
    content: str
    rating: int | None
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, c: Comment) -> "CommentResponse":
        return cls(
            id=c.id,
            user_id=c.user_id,
            user_name=c.user_name,
            book_id=c.book_id,
            content=c.content,
            rating=c.rating,
            created_at=c.created_at.isoformat() if c.created_at else None,
            updated_at=c.updated_at.isoformat() if c.updated_at else None,
        )


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    pagination: Pagination
