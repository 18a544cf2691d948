from collections.abc import Callable
from dataclasses import dataclass

from sqlstore.hooks import DEFAULT_ROLE, DEFAULT_TARGET
from sqlstore.mapping import ColumnMapper, identity
from sqlstore.names import DEFAULT_SEPARATOR
from sqlstore.strategy import get_available_dialects, get_strategy_class
from sqlstore.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = ['StoreOptions', 'ID_POLICIES']

ID_POLICIES = ('uuid', 'sequence')


@dataclass
class StoreOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`, `sqlite`

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: False)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)

    Store options:
    - name: Store name, the target id hooks are registered against
    - id_hook_role: Role id hooks are registered against (default: `sql`)
    - default_id: `uuid` (client-side uuid4) or `sequence` (database
      generated) when no id hook is registered
    - table_separator: Joins zone, base and name into a table name
    - to_column / from_column: Column name mapping pair (default: identity)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    # Connection pooling parameters
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30
    # Store parameters
    name: str = DEFAULT_TARGET
    id_hook_role: str = DEFAULT_ROLE
    default_id: str = 'uuid'
    table_separator: str = DEFAULT_SEPARATOR
    to_column: Callable[[str], str] | None = None
    from_column: Callable[[str], str] | None = None

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)
        if self.default_id not in ID_POLICIES:
            raise ValueError(f'default_id must be one of: {list(ID_POLICIES)}')
        if not self.table_separator:
            raise ValueError('table_separator cannot be empty')
        self.to_column = self.to_column or identity
        self.from_column = self.from_column or identity
        if not callable(self.to_column) or not callable(self.from_column):
            raise ValueError('to_column and from_column must be callables')

    @property
    def mapper(self) -> ColumnMapper:
        return ColumnMapper(self.to_column, self.from_column)
