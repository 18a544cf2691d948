"""
Native SQL passthrough.

Two entry points bypass selector translation: a `native$` literal on a
query, which the store runs as written, and `SqlStore.native()`, which
hands the caller a pooled connection wrapped in a `NativeClient`. Rows
read through either still have their column names mapped back to fields.

The caller owns a `NativeClient` and must release it exactly once, either
with `release_connection()` or by using it as a context manager:

    with store.native(Entity('foo')) as client:
        rows = client.query('select id from foo')
"""
import logging
from typing import TYPE_CHECKING, Any

from sqlstore.exceptions import Phase, StoreError, TranslationError
from sqlstore.exceptions import raise_classified
from sqlstore.mapping import ColumnMapper
from sqlstore.row import RowMapper

from libb import attrdict, issequence

if TYPE_CHECKING:
    from sqlstore.connection import ConnectionPool, ConnectionWrapper
    from sqlstore.entity import Entity

logger = logging.getLogger(__name__)


def native_statement(native: Any) -> tuple[str, tuple]:
    """Split a `native$` value into SQL text and positional parameters.

    Accepts a SQL string or a `(sql, params)` pair.

    >>> native_statement('select 1')
    ('select 1', ())
    >>> native_statement(['select * from foo where id = %s', ['foo1']])
    ('select * from foo where id = %s', ('foo1',))
    """
    if isinstance(native, str):
        sql, params = native, ()
    elif issequence(native) and not isinstance(native, (str, bytes)) and len(native) == 2:
        sql, params = native
        if not isinstance(sql, str):
            raise TranslationError(f'native$ SQL must be a string, got {type(sql).__name__}')
        if params is None:
            params = ()
        elif not issequence(params) or isinstance(params, (str, bytes)):
            raise TranslationError('native$ parameters must be a list')
    else:
        raise TranslationError('native$ expects a SQL string or a (sql, params) pair')
    if not sql.strip():
        raise TranslationError('native$ SQL is empty')
    return sql, tuple(params)


class NativeClient:
    """Pooled connection handed to the caller for raw SQL.

    The store never releases it; each statement commits on its own.
    """

    def __init__(self, cn: 'ConnectionWrapper', pool: 'ConnectionPool',
                 mapper: ColumnMapper, entity: 'Entity', table: str) -> None:
        self._cn = cn
        self._pool = pool
        self.mapper = mapper
        self.entity = entity
        self.table = table

    def __enter__(self) -> 'NativeClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self.released:
            self.release_connection()

    def __del__(self) -> None:
        if not getattr(self, '_cn', None) or self._cn.released:
            return
        logger.warning(f'Native connection for {self.entity.canon} was never released')

    @property
    def released(self) -> bool:
        return self._cn.released

    @property
    def connection(self) -> Any:
        """The underlying DBAPI connection."""
        self._check_open()
        return self._cn.dbapi_connection

    @property
    def dialect(self) -> str:
        return self._cn.dialect

    def _check_open(self) -> None:
        if self.released:
            raise StoreError('Native connection already released', phase=Phase.RELEASE)

    def query(self, sql: str, *params: Any) -> list[attrdict]:
        """Run SQL as written and return rows keyed by mapped field names.
        """
        self._check_open()
        phase = Phase.EXECUTE
        try:
            with self._cn.cursor() as cursor:
                cursor.execute(sql, params or None)
                phase = Phase.MAP
                rows = cursor.fetchall()
                if not rows:
                    return []
                mapper = RowMapper(self.mapper, cursor.columns)
                return [mapper.to_dict(row) for row in rows]
        except Exception as e:
            raise_classified(e, phase)

    def execute(self, sql: str, *params: Any) -> int:
        """Run a statement and return the affected row count."""
        self._check_open()
        try:
            with self._cn.cursor() as cursor:
                return cursor.execute(sql, params or None)
        except Exception as e:
            raise_classified(e, Phase.EXECUTE)

    def release_connection(self) -> None:
        """Return the connection to the pool.

        A second release only logs a warning.
        """
        self._pool.release(self._cn)
