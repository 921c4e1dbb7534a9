"""Page/limit pagination shared by list endpoints."""

import math

from pydantic import BaseModel


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=math.ceil(total / limit) if limit else 0,
            total=total,
            has_next=page * limit < total,
            has_prev=page > 1,
        )


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
