"""Catalog lookups and simple row operations built on top of the service.

Values are inlined as SQL literals since the bridge has no parameter binding. Identifiers are
validated against a strict pattern, values are rendered by `sql_literal`.
"""

import math
import re
from typing import Any, Mapping

from informix_gateway.bridge.result_codec import ResultSet, WriteOutcome
from informix_gateway.service.facade import QueryResult, ServiceFacade

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_PAGE_SIZE = 100


def validate_identifier(name: str, kind: str = "table") -> str:
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid {kind} name: {name!r}")
    return name


def sql_literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "'t'" if value else "'f'"
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Cannot render non-finite number {value!r} as SQL")
    if isinstance(value, (int, float)):
        return repr(value)
    return "'" + str(value).replace("'", "''") + "'"


def list_tables(service: ServiceFacade) -> list[str]:
    result = service.query("SELECT tabname FROM systables WHERE tabtype = 'T' AND tabid > 99 ORDER BY tabname")
    return [row["tabname"] for row in result.data if row.get("tabname") is not None]


def table_columns(service: ServiceFacade, table: str) -> ResultSet:
    validate_identifier(table)
    result = service.query(
        "SELECT c.colname, c.coltype, c.collength FROM syscolumns c, systables t "
        f"WHERE c.tabid = t.tabid AND t.tabname = {sql_literal(table)} ORDER BY c.colno"
    )
    return result.data


def table_rows(service: ServiceFacade, table: str, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> QueryResult:
    validate_identifier(table)
    if limit <= 0 or offset < 0:
        raise ValueError(f"Invalid page: limit={limit}, offset={offset}")
    return service.query(f"SELECT SKIP {int(offset)} FIRST {int(limit)} * FROM {table}")


def insert_row(service: ServiceFacade, table: str, data: Mapping[str, Any]) -> WriteOutcome:
    validate_identifier(table)
    if not data:
        raise ValueError("A row to insert needs at least one column")

    columns = [validate_identifier(column, "column") for column in data]
    values = [sql_literal(data[column]) for column in columns]
    return service.execute(f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(values)})")


def update_rows(
    service: ServiceFacade, table: str, data: Mapping[str, Any], where: Mapping[str, Any]
) -> WriteOutcome:
    validate_identifier(table)
    if not data:
        raise ValueError("An update needs at least one column to set")

    assignments = [f"{validate_identifier(column, 'column')} = {sql_literal(value)}" for column, value in data.items()]
    return service.execute(f"UPDATE {table} SET {', '.join(assignments)} WHERE {_where_clause(where)}")


def delete_rows(service: ServiceFacade, table: str, where: Mapping[str, Any]) -> WriteOutcome:
    validate_identifier(table)
    return service.execute(f"DELETE FROM {table} WHERE {_where_clause(where)}")


def _where_clause(where: Mapping[str, Any]) -> str:
    if not where:
        # never render an unbounded UPDATE or DELETE
        raise ValueError("A where mapping is required")

    conditions = []
    for column, value in where.items():
        validate_identifier(column, "column")
        conditions.append(f"{column} IS NULL" if value is None else f"{column} = {sql_literal(value)}")
    return " AND ".join(conditions)
