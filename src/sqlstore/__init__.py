"""
Entity store for PostgreSQL and SQLite.

Entities are saved, loaded, listed and removed through a `SqlStore`,
with operator selectors compiled to parameterized SQL:

    store = sqlstore.connect(drivername='sqlite', database='shop.db')
    store.list(Entity('product'), {'price': {'gte$': 200}, 'sort$': {'price': 1}})
"""
__version__ = '0.1.0'

from sqlstore.entity import Entity
from sqlstore.exceptions import ConnectionFailure, DbConnectionError
from sqlstore.exceptions import ExecutionError, IdGenerationError
from sqlstore.exceptions import IntegrityError, IntegrityViolationError
from sqlstore.exceptions import MappingError, OperationalError, Phase
from sqlstore.exceptions import ProgrammingError
from sqlstore.exceptions import StoreError, TranslationError
from sqlstore.mapping import ColumnMapper, camel_to_snake, snake_to_camel
from sqlstore.native import NativeClient
from sqlstore.options import StoreOptions
from sqlstore.query import Query
from sqlstore.store import SqlStore, connect
