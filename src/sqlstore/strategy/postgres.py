"""
PostgreSQL-specific strategy implementation.

Uses psycopg 3 through SQLAlchemy's `postgresql+psycopg` dialect:
- psycopg client-side `%s` placeholders, bound in order
- `RETURNING "id"` to read back sequence-generated ids
- dict and list field values stored as jsonb
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from psycopg.types.json import Jsonb
from sqlstore.names import ID_COLUMN
from sqlstore.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from sqlstore.cursor import Cursor
    from sqlstore.options import StoreOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'StoreOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)

        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    def get_engine_kwargs(self, options: 'StoreOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        return {'connect_args': {'application_name': options.appname}}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for PostgreSQL.
        """
        raw_conn = conn
        if hasattr(conn, 'driver_connection'):
            raw_conn = conn.driver_connection
        raw_conn.autocommit = True

    def placeholder(self, index: int) -> str:
        return '%s'

    def returning_id(self) -> str:
        return f'RETURNING {self.quote_identifier(ID_COLUMN)}'

    def inserted_id(self, cursor: 'Cursor') -> Any:
        row = cursor.fetchone()
        return row[0] if row else None

    def adapt_value(self, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return Jsonb(value)
        return super().adapt_value(value)
