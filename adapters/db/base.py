from typing import Any, Protocol, Sequence

from tablesync.types import QueryResult


class QueryGateway(Protocol):
    """Executes parameterized queries against the live database."""

    name: str
    dialect: str

    async def execute(self, query: str, params: Sequence[Any] = ()) -> QueryResult:
        """Run ``query`` with positional ``params``. Raise DatabaseError on failure."""

    async def ping(self) -> None:
        """Cheap connectivity check. Raise DatabaseError when unreachable."""
