"""
Base strategy interface for dialect-specific behaviour.

Each concrete strategy encapsulates what differs between backends:
connection URLs and engine arguments, connection setup, placeholder
rendering, paging syntax, parameter adaptation, and reading back
generated ids. Everything else works against this interface.
"""
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from sqlstore.sql import quote_identifier as sql_quote_identifier

if TYPE_CHECKING:
    from sqlstore.cursor import Cursor
    from sqlstore.options import StoreOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for database-specific operations.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'postgresql', 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'StoreOptions') -> Any:
        """Build the SQLAlchemy connection URL for this dialect.

        Args:
            options: StoreOptions containing connection parameters

        Returns
            sqlalchemy.URL for create_engine
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'StoreOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for this dialect.
        """

    @abstractmethod
    def configure_connection(self, conn: Any) -> None:
        """Configure a freshly checked out DBAPI connection.

        Args:
            conn: Pool-proxied DBAPI connection
        """

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Render the placeholder for the value at 1-based position `index`.
        """

    @abstractmethod
    def returning_id(self) -> str | None:
        """Clause appended to an INSERT to read back a generated id, if any.
        """

    @abstractmethod
    def inserted_id(self, cursor: 'Cursor') -> Any:
        """Read the id generated by the last INSERT on `cursor`.
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.

        Returns
            List of field names that must have non-None/non-zero values
        """

    @classmethod
    def validate_options(cls, options: 'StoreOptions') -> None:
        """Validate options for this dialect.

        Args:
            options: StoreOptions to validate

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def quote_identifier(self, identifier: str) -> str:
        """Quote a database identifier.

        Default implementation uses standard SQL double-quote escaping.
        """
        return sql_quote_identifier(identifier, self.dialect_name)

    def limit_offset(self, limit: str | None, offset: str | None) -> str:
        """Render LIMIT / OFFSET from already bound placeholders.

        Args:
            limit: Placeholder for the row limit, None for unlimited
            offset: Placeholder for the number of rows to skip, None for none

        Returns
            Clause text, '' when neither is set
        """
        parts = []
        if limit is not None:
            parts.append(f'LIMIT {limit}')
        if offset is not None:
            parts.append(f'OFFSET {offset}')
        return ' '.join(parts)

    def adapt_value(self, value: Any) -> Any:
        """Convert a field value to something the driver can bind.

        NaN and infinities have no portable SQL representation and are
        stored as NULL.
        """
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return value
