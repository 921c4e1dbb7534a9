"""Pydantic schemas for bs_catalog API requests and responses."""

from pydantic import BaseModel, Field, HttpUrl, field_validator

from src.bs_catalog.domain.models import Book, BookComment
from src.bs_common.cents import cents_to_display
from src.bs_common.pagination import Pagination

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    description: str = Field(..., min_length=10)
    price_cents: int = Field(..., ge=0)
    rent_cents: int = Field(..., ge=0)
    image: HttpUrl
    pdf_url: HttpUrl
    category: str = "General"
    total_copies: int = Field(1, ge=1)

    @field_validator("title", "author")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BookUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1)
    author: str | None = Field(None, min_length=1)
    description: str | None = Field(None, min_length=10)
    price_cents: int | None = Field(None, ge=0)
    rent_cents: int | None = Field(None, ge=0)
    image: HttpUrl | None = None
    pdf_url: HttpUrl | None = None
    category: str | None = None
    is_available: bool | None = None
    total_copies: int | None = Field(None, ge=1)

    def to_fields(self) -> dict[str, object]:
        """Only the fields the client actually sent, URLs flattened to str."""
        fields = self.model_dump(exclude_none=True)
        for key in ("image", "pdf_url"):
            if key in fields:
                fields[key] = str(fields[key])
        return fields


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookCommentOut(BaseModel):
    id: str
    user_id: str
    user_name: str
    content: str
    rating: int | None
    created_at: str | None

    @classmethod
    def from_domain(cls, c: BookComment) -> "BookCommentOut":
        return cls(
            id=c.id,
            user_id=c.user_id,
            user_name=c.user_name,
            content=c.content,
            rating=c.rating,
            created_at=c.created_at.isoformat() if c.created_at else None,
        )


class BookResponse(BaseModel):
    id: str
    title: str
    author: str
    description: str
    image: str
    pdf_url: str
    category: str
    price_cents: int
    price_display: str
    rent_cents: int
    rent_display: str
    total_copies: int
    available_copies: int
    is_available: bool
    average_rating: float
    comment_count: int
    date_added: str | None

    @classmethod
    def from_domain(cls, b: Book) -> "BookResponse":
        return cls(
            id=b.id,
            title=b.title,
            author=b.author,
            description=b.description,
            image=b.image,
            pdf_url=b.pdf_url,
            category=b.category,
            price_cents=b.price_cents,
            price_display=cents_to_display(b.price_cents),
            rent_cents=b.rent_cents,
            rent_display=cents_to_display(b.rent_cents),
            total_copies=b.total_copies,
            available_copies=b.available_copies,
            is_available=b.is_available,
            average_rating=b.average_rating,
            comment_count=len(b.comments),
            date_added=b.date_added.isoformat() if b.date_added else None,
        )


class BookListResponse(BaseModel):
    books: list[BookResponse]
    pagination: Pagination


class BookCommentsResponse(BaseModel):
    comments: list[BookCommentOut]
    total_comments: int
    average_rating: float
