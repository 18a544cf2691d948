import pytest
from sqlstore.exceptions import TranslationError
from sqlstore.mapping import ColumnMapper
from sqlstore.modifiers import compile_order_by, compile_paging
from sqlstore.modifiers import compile_projection, non_negative
from sqlstore.strategy import get_strategy
from sqlstore.translate import ParamList, Translator


def test_order_by():
    translator = Translator(ColumnMapper())
    assert compile_order_by({'price': 1, 'name': -1}, translator) == '"price" ASC, "name" DESC'
    assert compile_order_by({'price': 'desc', 'name': 'ASC'}, translator) == '"price" DESC, "name" ASC'
    assert compile_order_by(None, translator) == ''
    assert compile_order_by({}, translator) == ''


def test_order_by_mapped():
    translator = Translator(ColumnMapper.camel_snake())
    assert compile_order_by({'barFoo': -1}, translator) == '"bar_foo" DESC'


@pytest.mark.parametrize('direction', [0, 2, True, 'up', None, 1.0])
def test_order_by_invalid_direction(direction):
    with pytest.raises(TranslationError):
        compile_order_by({'price': direction}, Translator(ColumnMapper()))


def test_order_by_not_mapping():
    with pytest.raises(TranslationError):
        compile_order_by(['price'], Translator(ColumnMapper()))


@pytest.mark.parametrize(('limit', 'skip', 'expected', 'values'), [
    (None, None, '', []),
    (0, 0, '', []),
    (1, None, 'LIMIT ?1', [1]),
    (2, 3, 'LIMIT ?1 OFFSET ?2', [2, 3]),
    (None, 3, 'LIMIT -1 OFFSET ?1', [3]),
    ])
def test_paging_sqlite(limit, skip, expected, values):
    params = ParamList(get_strategy('sqlite').placeholder)
    assert compile_paging(limit, skip, params, get_strategy('sqlite')) == expected
    assert params.values == values


def test_paging_postgres():
    strategy = get_strategy('postgresql')
    params = ParamList(strategy.placeholder)
    assert compile_paging(None, 3, params, strategy) == 'OFFSET %s'
    params = ParamList(strategy.placeholder)
    assert compile_paging(1, 1, params, strategy) == 'LIMIT %s OFFSET %s'


def test_paging_follows_where_params():
    strategy = get_strategy('sqlite')
    params = ParamList(strategy.placeholder)
    params.bind('x')
    assert compile_paging(1, 2, params, strategy) == 'LIMIT ?2 OFFSET ?3'


@pytest.mark.parametrize('value', [-1, True, 1.5, '3'])
def test_non_negative_rejects(value):
    with pytest.raises(TranslationError):
        non_negative('limit', value)


def test_projection():
    mapper = ColumnMapper()
    assert compile_projection(None, mapper) is None
    assert compile_projection([], mapper) is None
    assert compile_projection(['name'], mapper) == ['id', 'name']
    assert compile_projection(['name', 'id', 'name'], mapper) == ['name', 'id']


def test_projection_mapped():
    assert compile_projection(['barFoo'], ColumnMapper.camel_snake()) == ['id', 'bar_foo']


@pytest.mark.parametrize('fields', ['name', 5])
def test_projection_invalid(fields):
    with pytest.raises(TranslationError):
        compile_projection(fields, ColumnMapper())
