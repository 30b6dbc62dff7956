from typing import Optional, List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper, used by all offset-paged list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Cursor-paginated feed wrapper (updates feed)
class CursorPage(BaseModel, Generic[T]):
    data: List[T]
    next_cursor: Optional[str] = None


# Error responses
class ErrorResponse(BaseModel):
    detail: str


# OpenAPI `responses=` for routers whose services raise AppError
ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 410)
}


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


def paginate(query, page: int, limit: int) -> dict:
    """Apply offset pagination to a query and return PaginatedResponse kwargs."""
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return dict(
        data=items,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )
