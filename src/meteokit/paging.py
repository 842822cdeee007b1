# meteokit/paging.py
from pydantic import BaseModel, ConfigDict, Field

FIRST_PAGE = 1
DEFAULT_PAGE_SIZE = 20


class Paging(BaseModel):
    """Immutable page/limit pair used by offset-paginated endpoints."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=FIRST_PAGE, ge=0)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)

    @property
    def offset(self) -> int:
        return self.page * self.limit

    @property
    def is_first(self) -> bool:
        return self.page == FIRST_PAGE

    def next(self) -> "Paging":
        return Paging(page=self.page + 1, limit=self.limit)

    def first(self) -> "Paging":
        return Paging(page=FIRST_PAGE, limit=self.limit)
