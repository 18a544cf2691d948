"""
Connection pool handling with SQLAlchemy.

SQLAlchemy is used exclusively for connection management and pooling;
statements run on the raw DBAPI connection through `Cursor`. The store only
consumes the acquire/release contract of `ConnectionPool`:

    cn = pool.acquire()
    try:
        ...
    finally:
        pool.release(cn)
"""
import atexit
import logging
import threading

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlstore.cursor import Cursor
from sqlstore.options import StoreOptions
from sqlstore.strategy import DatabaseStrategy, get_strategy

logger = logging.getLogger(__name__)

# Thread-safe engine registry
_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: StoreOptions, engine_factory=sa.create_engine,
                           **kwargs) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Args:
        options: StoreOptions object
        engine_factory: Function to create engines (defaults to sqlalchemy.create_engine)
        **kwargs: Additional arguments passed to engine factory

    Returns
        sqlalchemy.engine.Engine: SQLAlchemy engine
    """
    strategy = get_strategy(options.drivername)
    url = strategy.build_connection_url(options)
    key = (f'{url.render_as_string(hide_password=False)}_{options.use_pool}'
           f'_{options.pool_max_connections}_{options.pool_max_idle_time}'
           f'_{options.pool_wait_timeout}')

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        engine_kwargs = {'echo': False}
        engine_kwargs.update(strategy.get_engine_kwargs(options))

        if not options.use_pool:
            engine_kwargs['poolclass'] = NullPool
        else:
            engine_kwargs['pool_size'] = options.pool_max_connections
            engine_kwargs['pool_recycle'] = options.pool_max_idle_time
            engine_kwargs['pool_timeout'] = options.pool_wait_timeout
            engine_kwargs['max_overflow'] = 0
            engine_kwargs['pool_pre_ping'] = True
            engine_kwargs['pool_reset_on_return'] = 'rollback'

        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_engine(engine: Engine) -> None:
    """Dispose one engine and drop it from the registry."""
    with _engine_registry_lock:
        for key, registered in list(_engine_registry.items()):
            if registered is engine:
                del _engine_registry[key]
        engine.dispose()


def dispose_all_engines():
    """Dispose all engines in the registry."""
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a checked-out SQLAlchemy connection to track calls and execution time.

    Statements run on the underlying DBAPI connection, configured for
    auto-commit by the dialect strategy, so every statement commits on its
    own and releasing the connection never discards work.
    """

    def __init__(self, sa_connection: sa.engine.Connection,
                 strategy: DatabaseStrategy,
                 pool: 'ConnectionPool | None' = None) -> None:
        self.sa_connection = sa_connection
        self.strategy = strategy
        self.pool = pool
        self.dbapi_connection = sa_connection.connection
        self.calls = 0
        self.time = 0
        self.released = False

    @property
    def dialect(self) -> str:
        return self.strategy.dialect_name

    def cursor(self) -> Cursor:
        """Get a wrapped cursor for this connection."""
        return Cursor(self.dbapi_connection.cursor(), self)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics

        Args:
            elapsed: Time in seconds that the query took to execute
        """
        self.time += elapsed
        self.calls += 1

    def rollback(self) -> None:
        self.dbapi_connection.rollback()

    def close(self) -> None:
        """Return the connection to the pool.

        Closing twice is a no-op.
        """
        if self.released:
            return
        self.released = True
        try:
            if not self.sa_connection.closed:
                self.sa_connection.close()
        finally:
            if self.pool is not None:
                self.pool.checked_in()
        logger.debug(f'Connection released: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')


class ConnectionPool:
    """Bounded pool of configured connections for one store.
    """

    def __init__(self, options: StoreOptions, engine: Engine | None = None) -> None:
        self.options = options
        self.strategy = get_strategy(options.drivername)
        self.engine = engine or get_engine_for_options(options)
        self.outstanding = 0
        self._lock = threading.Lock()

    def acquire(self) -> ConnectionWrapper:
        """Check out a configured connection.

        Raises whatever SQLAlchemy or the driver raise when the pool is
        exhausted or the backend is unreachable; the caller classifies it.
        """
        sa_connection = self.engine.connect()
        try:
            self.strategy.configure_connection(sa_connection.connection)
        except Exception:
            sa_connection.close()
            raise
        with self._lock:
            self.outstanding += 1
        logger.debug(f'Acquired {self.strategy.dialect_name} connection ({self.outstanding} outstanding)')
        return ConnectionWrapper(sa_connection, self.strategy, self)

    def release(self, cn: ConnectionWrapper) -> None:
        """Return a connection to the pool. Releasing twice is a no-op."""
        if cn.released:
            logger.warning('Connection already released')
            return
        cn.close()

    def checked_in(self) -> None:
        with self._lock:
            self.outstanding -= 1

    def dispose(self) -> None:
        dispose_engine(self.engine)
