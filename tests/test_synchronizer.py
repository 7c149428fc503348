from __future__ import annotations

import asyncio

from conftest import fk_row, table_rows
from tablesync.constraints import ConstraintResolver
from tablesync.messages import (
    ConstraintSet,
    FavoritesQuantityUpdated,
    FetchTableData,
    FetchTables,
    GetTableSchema,
    TableSelected,
    TablesFetchedFlag,
    TablesLoaded,
)
from tablesync.synchronizer import SchemaSynchronizer


def _sync(gateway, seq_ids, timeline):
    """Emits and submits land on one timeline so their relative order is visible."""
    constraints = ConstraintResolver(gateway, emit=timeline.append)
    return SchemaSynchronizer(
        gateway,
        emit=timeline.append,
        submit=timeline.append,
        constraints=constraints,
        id_factory=seq_ids,
    )


def test_names_and_map_agree(gateway, seq_ids):
    gateway.on("information_schema.tables", table_rows("orders", "users", "payments"))
    timeline = []

    asyncio.run(_sync(gateway, seq_ids, timeline).run(FetchTables()))

    loaded = timeline[0]
    assert isinstance(loaded, TablesLoaded)
    assert len(loaded.names) == len(loaded.map)
    assert all(name in loaded.map for name in loaded.names)
    table = loaded.map["orders"]
    assert table.id == "T1"
    assert table.is_fetched is False
    assert table.rows_ids == [] and table.fields_ids == []


def test_full_pass_order(gateway, seq_ids):
    gateway.on("information_schema.tables", table_rows("orders", "users"))
    gateway.on("table_constraints", [fk_row("orders", "fk_orders_user")])
    timeline = []

    asyncio.run(_sync(gateway, seq_ids, timeline).run(FetchTables(favorite_id="fav-1")))

    assert [type(item) for item in timeline] == [
        TablesLoaded,
        TablesFetchedFlag,
        FavoritesQuantityUpdated,
        TableSelected,
        FetchTableData,
        GetTableSchema,
        ConstraintSet,
    ]
    assert timeline[1] == TablesFetchedFlag(value=True)
    assert timeline[2] == FavoritesQuantityUpdated(favorite_id="fav-1", quantity=2)
    assert timeline[3] == TableSelected(name="orders")
    assert timeline[4] == FetchTableData(table_name="orders")
    assert timeline[5] == GetTableSchema(id="T1", table_name="orders", is_fetched=False)
    assert timeline[6].record.table_id == "T1"


def test_without_favorite_no_quantity_update(gateway, seq_ids):
    gateway.on("information_schema.tables", table_rows("orders"))
    timeline = []

    asyncio.run(_sync(gateway, seq_ids, timeline).run(FetchTables()))

    assert not any(isinstance(u, FavoritesQuantityUpdated) for u in timeline)


def test_empty_schema_has_no_follow_ons(gateway, seq_ids):
    timeline = []

    asyncio.run(_sync(gateway, seq_ids, timeline).run(FetchTables(favorite_id="fav-1")))

    assert timeline == [
        TablesLoaded(names=[], map={}),
        TablesFetchedFlag(value=True),
        FavoritesQuantityUpdated(favorite_id="fav-1", quantity=0),
    ]
    assert gateway.queries("table_constraints") == []


def test_schema_is_passed_to_the_catalog_query(gateway, seq_ids):
    timeline = []
    constraints = ConstraintResolver(gateway, emit=timeline.append)
    sync = SchemaSynchronizer(
        gateway,
        emit=timeline.append,
        submit=timeline.append,
        constraints=constraints,
        schema="sales",
    )

    asyncio.run(sync.run(FetchTables()))

    assert gateway.calls[0][1] == ("sales",)
