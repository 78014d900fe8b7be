from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

Dir = Literal["asc", "desc"]
RelationKind = Literal["simple", "nested", "count"]
FilterMap = Dict[str, Optional[str]]

class OrderSpec(BaseModel):
    fields: List[str] = ["id"]
    direction: Dir = "asc"

class QuerySpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    select: List[str] = ["*"]
    where: FilterMap = {}
    where_not: FilterMap = {}
    or_where: FilterMap = {}
    with_: List[str] = Field(default_factory=list, alias="with")
    order: OrderSpec = OrderSpec()
    take: int = 25
    page: int = Field(default=1, ge=1)
    search: Optional[str] = None

    @property
    def skip(self) -> int:
        if self.take > 0 and self.page > 1:
            return (self.page - 1) * self.take
        return 0

    @property
    def selects_all(self) -> bool:
        return not self.select or "*" in self.select

class RelationDirective(BaseModel):
    kind: RelationKind
    name: str
    subpaths: List[str] = []

class ListResult(BaseModel):
    collection: List[Dict[str, Any]]
    page: int
    take: int
    total: int
