from typing import Any, Generic, Sequence, TypeVar
from pydantic import BaseModel, computed_field
from sqlalchemy import Select, select, func
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")

MAX_PAGE_SIZE = 200


class PageDTO(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @computed_field
    @property
    def pages(self) -> int:
        if self.page_size <= 0 or self.total <= 0:
            return 1
        return -(-self.total // self.page_size)

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.pages


async def paginate(
        db: AsyncSession,
        base_stmt: Select,
        *,
        page: int = 1,
        page_size: int = 20,
        where: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
) -> tuple[list[Any], int]:
    """Returns one page of ORM rows and the total row count for the filtered statement."""
    page = max(1, int(page))
    page_size = min(MAX_PAGE_SIZE, max(1, int(page_size)))

    stmt = base_stmt.where(*where) if where else base_stmt
    total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))

    rows = await db.scalars(stmt.order_by(*order_by).limit(page_size).offset((page - 1) * page_size))
    return list(rows.all()), int(total or 0)
