"""
DB-API cursor wrapper that logs every statement with its arguments and
execution time, and feeds call statistics back to its connection.
"""
import logging
import time
from collections.abc import Sequence
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(self, operation: str, params: Sequence | None = None):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {params}')
        try:
            return func(self, operation, params)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {params}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Thin wrapper over a DBAPI cursor.
    """

    def __init__(self, cursor: Any, connection_wrapper: Any) -> None:
        self.dbapi_cursor = cursor
        self.connwrapper = connection_wrapper

    def __getattr__(self, name: str) -> Any:
        """Delegate members to underlying cursor."""
        return getattr(self.dbapi_cursor, name)

    def __enter__(self) -> 'Cursor':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def description(self) -> list[tuple] | None:
        """Column descriptions for last query."""
        return self.dbapi_cursor.description

    @property
    def columns(self) -> list[str]:
        """Column names of the current result set."""
        return [desc[0] for desc in (self.description or [])]

    @property
    def rowcount(self) -> int:
        """Number of rows produced/affected by last operation."""
        return self.dbapi_cursor.rowcount

    @property
    def lastrowid(self) -> Any:
        return getattr(self.dbapi_cursor, 'lastrowid', None)

    def close(self) -> None:
        """Close cursor."""
        self.dbapi_cursor.close()

    def fetchone(self) -> tuple | None:
        """Fetch next row."""
        return self.dbapi_cursor.fetchone()

    def fetchall(self) -> list[tuple]:
        """Fetch all remaining rows."""
        if self.description is None:
            return []
        return self.dbapi_cursor.fetchall()

    @dumpsql
    def execute(self, operation: str, params: Sequence | None = None) -> int:
        """Execute a database operation with positional parameters.

        With `params` None the driver runs the SQL as written; an empty
        sequence still goes through its placeholder parsing.
        """
        if params is not None:
            self.dbapi_cursor.execute(operation, tuple(params))
        else:
            self.dbapi_cursor.execute(operation)
        return self.dbapi_cursor.rowcount
