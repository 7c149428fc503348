from functools import lru_cache

from fastapi import Request

from adapters.db.postgres_adapter import PostgresAdapter
from app.errors import DispatcherNotRunning
from app.settings import get_settings
from tablesync.dispatcher import WorkflowDispatcher


@lru_cache()
def get_gateway() -> PostgresAdapter:
    """
    Singleton-ish Postgres gateway for the FastAPI app.

    An empty POSTGRES_DSN lets libpq fall back to its PG* environment variables.
    """
    settings = get_settings()
    return PostgresAdapter(settings.postgres_dsn)


def get_dispatcher(request: Request) -> WorkflowDispatcher:
    """The dispatcher started by the application lifespan."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None or not dispatcher.running:
        raise DispatcherNotRunning(message="workflow dispatcher is not running")
    return dispatcher
