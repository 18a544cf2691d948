"""
Entity store over a relational database.

`SqlStore` exposes the entity actions as methods. Each action compiles its
SQL first, then checks a connection out of the pool, runs one statement,
maps the rows back to entities and returns the connection:

    BUILD -> ACQUIRE -> EXECUTE -> MAP -> RELEASE

A failure in BUILD never touches the pool. A failure after ACQUIRE rolls
back, releases the connection and surfaces as one `StoreError` subclass
tagged with the phase it happened in.

    store = connect(drivername='sqlite', database='products.db')
    apple = store.save(Entity('product', fields={'name': 'apple', 'price': 100}))
    store.list(Entity('product'), {'price': {'gte$': 100}, 'sort$': {'price': -1}})
"""
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, fields
from typing import Any

from sqlstore.connection import ConnectionPool, ConnectionWrapper
from sqlstore.entity import Entity
from sqlstore.exceptions import ExecutionError, Phase, TranslationError
from sqlstore.exceptions import raise_classified
from sqlstore.hooks import IdHandler, IdHookRegistry
from sqlstore.mapping import ColumnMapper
from sqlstore.modifiers import compile_order_by, compile_paging
from sqlstore.modifiers import compile_projection
from sqlstore.names import ID_COLUMN, resolve_table
from sqlstore.native import NativeClient, native_statement
from sqlstore.options import StoreOptions
from sqlstore.query import Query
from sqlstore.row import RowMapper
from sqlstore.selector import parse_selector
from sqlstore.sql import Statement, build_delete_sql, build_insert_sql
from sqlstore.sql import build_select_sql, build_update_sql
from sqlstore.translate import ParamList, Translator

from libb import load_options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreConfig:
    """Configuration fixed for the lifetime of a store."""
    options: StoreOptions
    mapper: ColumnMapper
    hooks: IdHookRegistry


class Request:
    """Per-call executor state."""

    __slots__ = ('action', 'entity', 'phase', 'cn')

    def __init__(self, action: str, entity: Entity) -> None:
        self.action = action
        self.entity = entity
        self.phase = Phase.BUILD
        self.cn: ConnectionWrapper | None = None


class SqlStore:
    """Entity actions against one database.
    """

    def __init__(self, options: StoreOptions, pool: ConnectionPool | None = None) -> None:
        self.config = StoreConfig(options=options, mapper=options.mapper,
                                  hooks=IdHookRegistry())
        self.pool = pool or ConnectionPool(options)
        self.strategy = self.pool.strategy
        self.translator = Translator(self.config.mapper, self.strategy.dialect_name)

    def __enter__(self) -> 'SqlStore':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'SqlStore({self.name}, {self.dialect})'

    @property
    def name(self) -> str:
        return self.config.options.name

    @property
    def options(self) -> StoreOptions:
        return self.config.options

    @property
    def mapper(self) -> ColumnMapper:
        return self.config.mapper

    @property
    def dialect(self) -> str:
        return self.strategy.dialect_name

    @classmethod
    def from_options(cls, options, config=None, **kw) -> 'SqlStore':
        return connect(options, config, **kw)

    # executor

    @contextmanager
    def _request(self, action: str, entity: Entity):
        """Check out a connection for one action and release it afterwards.
        """
        request = Request(action, entity)
        request.phase = Phase.ACQUIRE
        try:
            request.cn = self.pool.acquire()
        except Exception as e:
            raise_classified(e, Phase.ACQUIRE)
        request.phase = Phase.EXECUTE
        try:
            yield request
        except Exception as e:
            logger.debug(f'{action} {entity.canon} failed in {request.phase.value}: {e}')
            try:
                request.cn.rollback()
            except Exception as rollback_error:
                logger.warning(f'Rollback after failed {action} raised: {rollback_error}')
            raise_classified(e, request.phase)
        finally:
            request.phase = Phase.RELEASE
            self.pool.release(request.cn)

    def _params(self) -> ParamList:
        return ParamList(self.strategy.placeholder)

    def _table(self, entity: Entity) -> str:
        return resolve_table(entity, self.dialect, self.options.table_separator)

    def _build_select(self, entity: Entity, query: Query, limit: Any = None) -> Statement:
        """Compile a query to SELECT with its parameters.

        Parameters are bound in clause order: WHERE, then LIMIT, then OFFSET.
        """
        if query.native is not None:
            sql, params = native_statement(query.native)
            return Statement(sql, list(params) or None)

        table = self._table(entity)
        params = self._params()
        where = self.translator.where(parse_selector(query.selector), params, query.ids)
        order_by = compile_order_by(query.sort, self.translator)
        columns = compile_projection(query.fields, self.mapper)
        paging = compile_paging(query.limit if limit is None else limit,
                                query.skip, params, self.strategy)
        sql = build_select_sql(table, self.dialect, columns, where, order_by, paging)
        return Statement(sql, params.values)

    def _adapt(self, value: Any) -> Any:
        return self.strategy.adapt_value(value)

    def _columns(self, entity: Entity) -> tuple[list[str], list[Any]]:
        columns, values = [], []
        for field, value in entity.fields.items():
            columns.append(self.mapper.column(field))
            values.append(self._adapt(value))
        if len(set(columns)) != len(columns):
            raise TranslationError(f'Fields of {entity.canon} map to duplicate columns {columns}')
        return columns, values

    def _new_id(self, entity: Entity) -> Any:
        """Id for an insert: caller supplied, hook generated or per policy.

        None means the database generates it.
        """
        if entity.new_id is not None:
            return entity.new_id
        id = self.config.hooks.generate(self.options.id_hook_role, self.name, entity.fields)
        if id is not None:
            return id
        if self.options.default_id == 'uuid':
            return str(uuid.uuid4())
        return None

    # actions

    def save(self, entity: Entity) -> Entity:
        """Insert or update an entity and return it with its id.

        An entity with an id is updated unless `new_id` is set, which
        inserts under that id instead.
        """
        if entity.id is not None and entity.new_id is None:
            return self._update(entity)
        return self._insert(entity)

    def _update(self, entity: Entity) -> Entity:
        table = self._table(entity)
        columns, values = self._columns(entity)
        if not columns:
            logger.debug(f'Nothing to update for {entity!r}')
            return entity
        params = self._params()
        placeholders = params.bind_all(values)
        where = f'{self.translator.column(ID_COLUMN)} = {params.bind(entity.id)}'
        sql = build_update_sql(table, self.dialect, columns, placeholders, where)

        with self._request('save', entity) as request:
            with request.cn.cursor() as cursor:
                rowcount = cursor.execute(sql, params.values)
        if rowcount == 0:
            logger.warning(f'Update of {entity.canon} id={entity.id!r} matched no rows')
        return entity

    def _insert(self, entity: Entity) -> Entity:
        table = self._table(entity)
        columns, values = self._columns(entity)
        id = self._new_id(entity)
        returning = None
        if id is not None:
            columns.insert(0, ID_COLUMN)
            values.insert(0, id)
        else:
            returning = self.strategy.returning_id()
        params = self._params()
        placeholders = params.bind_all(values)
        sql = build_insert_sql(table, self.dialect, columns, placeholders, returning)

        with self._request('save', entity) as request:
            with request.cn.cursor() as cursor:
                cursor.execute(sql, params.values)
                if id is None:
                    request.phase = Phase.MAP
                    id = self.strategy.inserted_id(cursor)
                    if id is None:
                        raise ExecutionError(f'Insert into {table} returned no generated id')
        logger.debug(f'Inserted {entity.canon} id={id!r}')
        return entity.with_id(id)

    def load(self, entity: Entity, query: Any = None) -> Entity | None:
        """First entity matching the query, or None when nothing matches.

        Without a query the entity's own id is looked up.
        """
        if query is None:
            query = Query.by_id(entity.id) if entity.id is not None else Query()
        query = Query.parse(query)
        statement = self._build_select(entity, query, limit=1)

        with self._request('load', entity) as request:
            with request.cn.cursor() as cursor:
                cursor.execute(statement.sql, statement.params)
                request.phase = Phase.MAP
                if cursor.description is None:
                    return None
                row = cursor.fetchone()
                if row is None:
                    return None
                return RowMapper(self.mapper, cursor.columns).to_entity(entity, row)

    def list(self, entity: Entity, query: Any = None) -> list[Entity]:
        """All entities matching the query."""
        statement = self._build_select(entity, Query.parse(query))

        with self._request('list', entity) as request:
            with request.cn.cursor() as cursor:
                cursor.execute(statement.sql, statement.params)
                request.phase = Phase.MAP
                rows = cursor.fetchall()
                return RowMapper(self.mapper, cursor.columns).to_entities(entity, rows)

    def remove(self, entity: Entity, query: Any = None) -> int | Entity | None:
        """Delete matching rows.

        With `all$` every matching row is deleted and the count returned.
        Otherwise only the first match (by `sort$`, then `skip$`) is deleted;
        `load$` returns that removed entity instead of the count.
        """
        if query is None:
            if entity.id is None:
                raise TranslationError(f'remove on {entity.canon} needs an id or a query')
            query = Query.by_id(entity.id)
        query = Query.parse(query)
        if query.native is not None:
            raise TranslationError('native$ is not supported by remove')

        table = self._table(entity)
        if query.all:
            params = self._params()
            where = self.translator.where(parse_selector(query.selector), params, query.ids)
            sql = build_delete_sql(table, where)
            with self._request('remove', entity) as request:
                with request.cn.cursor() as cursor:
                    count = cursor.execute(sql, params.values)
            logger.debug(f'Removed {count} rows from {entity.canon}')
            return count

        statement = self._build_select(entity, query, limit=1)
        params = self._params()
        id_column = self.translator.column(ID_COLUMN)
        with self._request('remove', entity) as request:
            with request.cn.cursor() as cursor:
                cursor.execute(statement.sql, statement.params)
                request.phase = Phase.MAP
                row = cursor.fetchone()
                if row is None:
                    return None if query.load else 0
                removed = RowMapper(self.mapper, cursor.columns).to_entity(entity, row)
                request.phase = Phase.EXECUTE
                where = f'{id_column} = {params.bind(removed.id)}'
                count = cursor.execute(build_delete_sql(table, where), params.values)
        logger.debug(f'Removed {entity.canon} id={removed.id!r}')
        return removed if query.load else count

    def native(self, entity: Entity) -> NativeClient:
        """Check out a connection for raw SQL.

        The caller must release it with `release_connection()`.
        """
        table = self._table(entity)
        try:
            cn = self.pool.acquire()
        except Exception as e:
            raise_classified(e, Phase.ACQUIRE)
        return NativeClient(cn, self.pool, self.mapper, entity, table)

    def register_id_hook(self, handler: IdHandler, role: str | None = None,
                         target: str | None = None) -> tuple[str, str]:
        """Register the id generator consulted before inserts.

        Defaults to this store's role and name, which is the key `save`
        looks up.
        """
        role = role or self.options.id_hook_role
        target = target or self.name
        key = self.config.hooks.register(role, target, handler)
        logger.debug(f'Registered id hook for role={role} target={target}')
        return key

    def close(self) -> None:
        """Dispose the engine behind this store's pool."""
        if self.pool.outstanding:
            logger.warning(f'Closing {self!r} with {self.pool.outstanding} connections checked out')
        self.pool.dispose()


@load_options(cls=StoreOptions)
def connect(options: StoreOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> SqlStore:
    """Create an entity store.

    Args:
        options: Can be:
                - StoreOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        SqlStore bound to a pooled engine
    """
    if isinstance(options, StoreOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=StoreOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    return SqlStore(options)
