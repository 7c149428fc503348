from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from app.dependencies import get_dispatcher
from app.schemas import (
    DropTableRequest,
    FetchTablesRequest,
    MutationParametersModel,
    OutcomeResponse,
    TableDataRequest,
    TableSchemaRequest,
    TruncateTableRequest,
)
from tablesync.dispatcher import WorkflowDispatcher
from tablesync.messages import (
    DropTable,
    FetchTableData,
    FetchTables,
    GetTableSchema,
    MutationParameters,
    Request,
    TruncateTable,
    serialize_update,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# bytea values arrive as bytes (or memoryview); render them like psql does
BINARY_ENCODERS: Dict[Any, Callable[[Any], str]] = {
    bytes: lambda b: "\\x" + b.hex(),
    memoryview: lambda m: "\\x" + m.tobytes().hex(),
}


# -------------------------------
# Helpers
# -------------------------------


def _parameters(model: Optional[MutationParametersModel]) -> Optional[MutationParameters]:
    if model is None:
        return None
    return MutationParameters(cascade=model.cascade, restart_identity=model.restart_identity)


async def _run(dispatcher: WorkflowDispatcher, request: Request) -> OutcomeResponse:
    """Submit and wait; a failed outcome is raised for the error contract."""
    outcome = await dispatcher.submit(request)
    if not outcome.ok and outcome.error is not None:
        raise outcome.error
    return OutcomeResponse(ok=outcome.ok)


# -------------------------------
# Requests
# -------------------------------


@router.post("/tables/fetch", status_code=202, name="fetch_tables")
async def fetch_tables(
    body: FetchTablesRequest,
    dispatcher: WorkflowDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    # Synchronization passes are long; the collaborator follows /updates.
    dispatcher.submit(FetchTables(favorite_id=body.favorite_id))
    return {"accepted": True}


@router.post("/tables/data", response_model=OutcomeResponse, name="fetch_table_data")
async def fetch_table_data(
    body: TableDataRequest,
    dispatcher: WorkflowDispatcher = Depends(get_dispatcher),
) -> OutcomeResponse:
    return await _run(
        dispatcher,
        FetchTableData(table_name=body.table_name, start_index=body.start_index),
    )


@router.post("/tables/schema", response_model=OutcomeResponse, name="get_table_schema")
async def get_table_schema(
    body: TableSchemaRequest,
    dispatcher: WorkflowDispatcher = Depends(get_dispatcher),
) -> OutcomeResponse:
    return await _run(
        dispatcher,
        GetTableSchema(id=body.id, table_name=body.table_name, is_fetched=body.is_fetched),
    )


@router.post("/tables/drop", response_model=OutcomeResponse, name="drop_table")
async def drop_table(
    body: DropTableRequest,
    dispatcher: WorkflowDispatcher = Depends(get_dispatcher),
) -> OutcomeResponse:
    return await _run(
        dispatcher,
        DropTable(
            table_name=body.table_name,
            selected_table_id=body.selected_table_id,
            parameters=_parameters(body.parameters),
            current_table_name=body.current_table_name,
        ),
    )


@router.post("/tables/truncate", response_model=OutcomeResponse, name="truncate_table")
async def truncate_table(
    body: TruncateTableRequest,
    dispatcher: WorkflowDispatcher = Depends(get_dispatcher),
) -> OutcomeResponse:
    return await _run(
        dispatcher,
        TruncateTable(
            table_name=body.table_name,
            selected_table_id=body.selected_table_id,
            parameters=_parameters(body.parameters),
        ),
    )


# -------------------------------
# State
# -------------------------------


@router.get("/tables", name="tables_snapshot")
async def tables_snapshot(
    dispatcher: WorkflowDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return dispatcher.store.snapshot()


@router.get("/updates", name="drain_updates")
async def drain_updates(
    dispatcher: WorkflowDispatcher = Depends(get_dispatcher),
) -> List[Dict[str, Any]]:
    # Encode before popping so a value that cannot be encoded loses nothing.
    updates = dispatcher.peek()
    payload = jsonable_encoder(
        [serialize_update(u) for u in updates], custom_encoder=BINARY_ENCODERS
    )
    dispatcher.drain(len(updates))
    logger.debug("Draining updates", extra={"count": len(updates)})
    return payload
