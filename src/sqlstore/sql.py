"""
SQL statement generation.

Builders take an already quoted table identifier, plain column names (quoted
here), and pre-rendered WHERE / ORDER BY / paging fragments. Values never
reach these functions; callers bind them and pass placeholders instead.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

TRUE = '1 = 1'
FALSE = '1 = 0'


@dataclass(slots=True)
class Statement:
    """Compiled SQL text with its positional parameters.

    `params` is None only for native SQL without parameters, which runs
    as written.
    """
    sql: str
    params: list[Any] | None = field(default_factory=list)


def quote_identifier(identifier: str, dialect: str = 'postgresql') -> str:
    """Safely quote database identifiers.

    Parameters
        identifier: Table or column name
        dialect: Database dialect

    Returns
        Quoted identifier

    Compiled PostgreSQL statements always pass through psycopg's `%s` parser,
    so a literal `%` in a PostgreSQL identifier is doubled.

    Raises
        ValueError: If dialect is unsupported
    """
    if dialect == 'postgresql':
        return '"' + identifier.replace('"', '""').replace('%', '%%') + '"'
    if dialect == 'sqlite':
        return '"' + identifier.replace('"', '""') + '"'

    raise ValueError(f'Unknown dialect: {dialect}')


def build_select_sql(table, dialect, columns=None, where=None, order_by=None, paging=None):
    """Generate a SELECT statement.

    Args:
        table: Quoted table identifier
        dialect: Database dialect ('postgresql', 'sqlite')
        columns: List of columns to select (None for *)
        where: WHERE clause (without 'WHERE' keyword)
        order_by: ORDER BY clause (without 'ORDER BY' keywords)
        paging: LIMIT / OFFSET clause

    Returns
        SQL query string
    """
    if columns:
        quoted_cols = ', '.join(quote_identifier(col, dialect) for col in columns)
        select_clause = f'SELECT {quoted_cols}'
    else:
        select_clause = 'SELECT *'

    sql = f'{select_clause} FROM {table}'

    if where:
        sql += f' WHERE {where}'

    if order_by:
        sql += f' ORDER BY {order_by}'

    if paging:
        sql += f' {paging}'

    return sql


def build_insert_sql(table, dialect, columns, placeholders, returning=None):
    """Generate an INSERT statement.

    An empty column list inserts a row of defaults, which is how a row whose
    id comes from a sequence and that has no other fields gets created.
    """
    if not columns:
        sql = f'INSERT INTO {table} DEFAULT VALUES'
    else:
        quoted_columns = ', '.join(quote_identifier(col, dialect) for col in columns)
        sql = f'INSERT INTO {table} ({quoted_columns}) VALUES ({", ".join(placeholders)})'

    if returning:
        sql += f' {returning}'

    return sql


def build_update_sql(table, dialect, columns, placeholders, where):
    """Generate an UPDATE statement setting each column to its placeholder.
    """
    assignments = ', '.join(
        f'{quote_identifier(col, dialect)} = {ph}'
        for col, ph in zip(columns, placeholders))
    return f'UPDATE {table} SET {assignments} WHERE {where}'


def build_delete_sql(table, where=None):
    """Generate a DELETE statement.
    """
    sql = f'DELETE FROM {table}'
    if where:
        sql += f' WHERE {where}'
    return sql
