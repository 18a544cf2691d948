import datetime
import math

import pytest
from psycopg.types.json import Jsonb
from sqlstore.options import StoreOptions
from sqlstore.strategy import get_available_dialects, get_strategy
from sqlstore.strategy import is_supported_dialect
from sqlstore.strategy.sqlite import convert_date, convert_datetime


def test_registry():
    assert set(get_available_dialects()) == {'postgresql', 'sqlite'}
    assert is_supported_dialect('sqlite')
    assert not is_supported_dialect('mssql')
    assert get_strategy('sqlite') is get_strategy('sqlite')
    with pytest.raises(ValueError):
        get_strategy('mssql')


def test_placeholders():
    assert get_strategy('postgresql').placeholder(1) == '%s'
    assert get_strategy('sqlite').placeholder(12) == '?12'


def test_limit_offset():
    pg = get_strategy('postgresql')
    sl = get_strategy('sqlite')
    assert pg.limit_offset(None, None) == ''
    assert pg.limit_offset('%s', None) == 'LIMIT %s'
    assert pg.limit_offset(None, '%s') == 'OFFSET %s'
    assert sl.limit_offset(None, '?1') == 'LIMIT -1 OFFSET ?1'
    assert sl.limit_offset('?1', '?2') == 'LIMIT ?1 OFFSET ?2'


def test_returning_id():
    assert get_strategy('postgresql').returning_id() == 'RETURNING "id"'
    assert get_strategy('sqlite').returning_id() is None


def test_adapt_value():
    pg = get_strategy('postgresql')
    sl = get_strategy('sqlite')
    assert sl.adapt_value(math.nan) is None
    assert sl.adapt_value(math.inf) is None
    assert sl.adapt_value(1.5) == 1.5
    assert sl.adapt_value({'a': 1}) == {'a': 1}
    assert isinstance(pg.adapt_value({'a': 1}), Jsonb)
    assert isinstance(pg.adapt_value([1, 2]), Jsonb)
    assert pg.adapt_value('x') == 'x'


def test_postgres_url():
    options = StoreOptions(hostname='db', username='u', password='p', database='d',
                           port=5433, timeout=10)
    url = get_strategy('postgresql').build_connection_url(options)
    assert url.drivername == 'postgresql+psycopg'
    assert (url.host, url.port, url.database) == ('db', 5433, 'd')
    assert url.query['connect_timeout'] == '10'


def test_sqlite_url():
    options = StoreOptions(drivername='sqlite', database='store.db')
    url = get_strategy('sqlite').build_connection_url(options)
    assert url.drivername == 'sqlite'
    assert url.database == 'store.db'


def test_sqlite_converters():
    assert convert_date(b'2024-02-29') == datetime.date(2024, 2, 29)
    assert convert_datetime(b'2024-02-29T13:45:10') == datetime.datetime(2024, 2, 29, 13, 45, 10)
