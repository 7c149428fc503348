"""
SQL text used by the workflow components.

Values travel as positional ``%s`` parameters. Table and schema names cannot be
bound as parameters, so they are rendered as quoted Postgres identifiers via
sqlglot.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from sqlglot import exp

from tablesync.messages import MutationParameters

Query = Tuple[str, Tuple[Any, ...]]

DIALECT = "postgres"

TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s
    AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT *
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

FOREIGN_KEYS_SQL = """
    SELECT tc.constraint_name,
        tc.constraint_type,
        tc.table_schema,
        tc.table_name,
        kcu.column_name,
        tc.is_deferrable,
        tc.initially_deferred,
        rc.match_option AS match_type,
        rc.update_rule AS on_update,
        rc.delete_rule AS on_delete,
        ccu.table_name AS references_table,
        ccu.column_name AS references_field
    FROM information_schema.table_constraints tc
    LEFT JOIN information_schema.key_column_usage kcu
        ON tc.constraint_catalog = kcu.constraint_catalog
        AND tc.constraint_schema = kcu.constraint_schema
        AND tc.constraint_name = kcu.constraint_name
    LEFT JOIN information_schema.referential_constraints rc
        ON tc.constraint_catalog = rc.constraint_catalog
        AND tc.constraint_schema = rc.constraint_schema
        AND tc.constraint_name = rc.constraint_name
    LEFT JOIN information_schema.constraint_column_usage ccu
        ON rc.unique_constraint_catalog = ccu.constraint_catalog
        AND rc.unique_constraint_schema = ccu.constraint_schema
        AND rc.unique_constraint_name = ccu.constraint_name
    WHERE lower(tc.constraint_type) IN ('foreign key')
    AND tc.table_schema = %s
"""


def quote_ident(name: str) -> str:
    """Render ``name`` as a double-quoted Postgres identifier."""
    return exp.to_identifier(name, quoted=True).sql(dialect=DIALECT)


def qualified_table(schema: str, table_name: str) -> str:
    return f"{quote_ident(schema)}.{quote_ident(table_name)}"


def list_tables(schema: str) -> Query:
    return TABLES_SQL, (schema,)


def table_columns(schema: str, table_name: str) -> Query:
    return COLUMNS_SQL, (schema, table_name)


def foreign_keys(schema: str) -> Query:
    return FOREIGN_KEYS_SQL, (schema,)


def table_page(
    schema: str, table_name: str, page_size: int, start_index: Optional[int] = None
) -> Query:
    target = qualified_table(schema, table_name)
    if not start_index:
        return f"SELECT * FROM {target} LIMIT %s", (page_size,)
    return f"SELECT * FROM {target} LIMIT %s OFFSET %s", (page_size, start_index)


def drop_table(
    schema: str, table_name: str, parameters: Optional[MutationParameters] = None
) -> Query:
    parts = [f"DROP TABLE IF EXISTS {qualified_table(schema, table_name)}"]
    if parameters and parameters.cascade:
        parts.append("CASCADE")
    return " ".join(parts), ()


def truncate_table(
    schema: str, table_name: str, parameters: Optional[MutationParameters] = None
) -> Query:
    parts = [f"TRUNCATE {qualified_table(schema, table_name)}"]
    if parameters and parameters.restart_identity:
        parts.append("RESTART IDENTITY")
    if parameters and parameters.cascade:
        parts.append("CASCADE")
    return " ".join(parts), ()
