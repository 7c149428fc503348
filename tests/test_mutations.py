import asyncio

from tablesync.messages import (
    DialogHidden,
    DropTable,
    ErrorNotification,
    MutationParameters,
    SelectionReset,
    TableDropped,
    TableTruncated,
    TruncateTable,
)
from tablesync.mutations import MutationExecutor


def _drop(current_table_name="T1"):
    return DropTable(
        table_name="users",
        selected_table_id="T1",
        parameters=MutationParameters(cascade=True),
        current_table_name=current_table_name,
    )


def test_drop_of_selected_table_resets_selection_first(gateway):
    emitted = []
    executor = MutationExecutor(gateway, emit=emitted.append)

    outcome = asyncio.run(executor.drop(_drop()))

    assert outcome.ok
    assert emitted == [SelectionReset(), TableDropped(id="T1"), DialogHidden()]
    assert gateway.queries("DROP") == ['DROP TABLE IF EXISTS "public"."users" CASCADE']


def test_drop_of_other_table_keeps_selection(gateway):
    emitted = []
    executor = MutationExecutor(gateway, emit=emitted.append)

    asyncio.run(executor.drop(_drop(current_table_name="orders")))

    assert emitted == [TableDropped(id="T1"), DialogHidden()]


def test_drop_failure_only_notifies(gateway, db_error):
    gateway.on("DROP TABLE", error=db_error("fk violation"))
    emitted = []
    executor = MutationExecutor(gateway, emit=emitted.append)

    outcome = asyncio.run(executor.drop(_drop()))

    assert not outcome.ok
    assert len(emitted) == 1
    note = emitted[0]
    assert isinstance(note, ErrorNotification)
    assert note.component == "ErrorModal"
    assert str(note.error) == "fk violation"
    assert outcome.error is note.error


def test_truncate_success_sequence_and_query(gateway):
    emitted = []
    executor = MutationExecutor(gateway, emit=emitted.append, schema="sales")

    request = TruncateTable(
        table_name="users",
        selected_table_id="T1",
        parameters=MutationParameters(restart_identity=True, cascade=False),
    )
    outcome = asyncio.run(executor.truncate(request))

    assert outcome.ok
    assert emitted == [TableTruncated(id="T1"), DialogHidden()]
    (sql,) = gateway.queries("TRUNCATE")
    assert sql == 'TRUNCATE "sales"."users" RESTART IDENTITY'


def test_truncate_failure_only_notifies(gateway, db_error):
    gateway.on("TRUNCATE", error=db_error("permission denied"))
    emitted = []
    executor = MutationExecutor(gateway, emit=emitted.append)

    outcome = asyncio.run(
        executor.truncate(TruncateTable(table_name="users", selected_table_id="T1"))
    )

    assert not outcome.ok
    assert [type(u) for u in emitted] == [ErrorNotification]
