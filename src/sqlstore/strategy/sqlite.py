"""
SQLite-specific strategy implementation.

It handles SQLite's differences from PostgreSQL:
- Numbered `?NNN` placeholders
- OFFSET is only valid after a LIMIT, so skip-only paging uses `LIMIT -1`
- Generated ids come from `cursor.lastrowid` (rowid aliases)
- dict/list values stored as JSON text, date/datetime columns parsed back
"""
import datetime
import json
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

import dateutil.parser
import sqlalchemy as sa
from sqlstore.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from sqlstore.cursor import Cursor
    from sqlstore.options import StoreOptions

logger = logging.getLogger(__name__)


def adapt_date_iso(val: datetime.date) -> str:
    """Convert date to ISO 8601 format string."""
    return val.isoformat()


def adapt_datetime_iso(val: datetime.datetime) -> str:
    """Convert datetime to ISO 8601 format string."""
    return val.isoformat()


def convert_date(val: bytes) -> datetime.date:
    """Convert ISO 8601 date string to date object."""
    return dateutil.parser.isoparse(val.decode()).date()


def convert_datetime(val: bytes) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object."""
    return dateutil.parser.isoparse(val.decode())


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'StoreOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'StoreOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        return {
            'connect_args': {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
            }
        }

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for SQLite.

        Adapters (Python -> SQLite) handle dict and list values, converters
        (SQLite -> Python) parse declared date/datetime columns.
        """
        sqlite_conn = conn
        if hasattr(conn, 'dbapi_connection'):
            sqlite_conn = conn.dbapi_connection

        sqlite3.register_adapter(dict, json.dumps)
        sqlite3.register_adapter(list, json.dumps)
        sqlite3.register_adapter(datetime.date, adapt_date_iso)
        sqlite3.register_adapter(datetime.datetime, adapt_datetime_iso)
        sqlite3.register_converter('date', convert_date)
        sqlite3.register_converter('datetime', convert_datetime)

        sqlite_conn.execute('PRAGMA foreign_keys = ON')
        sqlite_conn.isolation_level = None

    def placeholder(self, index: int) -> str:
        return f'?{index}'

    def limit_offset(self, limit: str | None, offset: str | None) -> str:
        if offset is not None and limit is None:
            return f'LIMIT -1 OFFSET {offset}'
        return super().limit_offset(limit, offset)

    def returning_id(self) -> None:
        return None

    def inserted_id(self, cursor: 'Cursor') -> Any:
        return cursor.lastrowid
