import pytest
from sqlstore.entity import Entity
from sqlstore.exceptions import TranslationError
from sqlstore.native import native_statement
from sqlstore.query import Query


def test_parse_flat_query():
    """Test $ directives are split from selector content"""
    q = Query.parse({
        'price': {'gte$': 200},
        'sort$': {'price': 1},
        'limit$': 1,
        'skip$': 2,
        'fields$': ['name'],
        'ids': ['a'],
        })
    assert q.selector == {'price': {'gte$': 200}}
    assert q.sort == {'price': 1}
    assert (q.limit, q.skip) == (1, 2)
    assert q.fields == ['name']
    assert q.ids == ['a']
    assert q.all is False
    assert q.load is False
    assert q.native is None


def test_parse_flags():
    q = Query.parse({'all$': True, 'load$': True, 'native$': 'select 1'})
    assert q.all is True
    assert q.load is True
    assert q.native == 'select 1'
    assert q.selector == {}


def test_parse_shorthands():
    """Test scalar and list shorthands"""
    assert Query.parse('foo1') == Query(selector={'id': 'foo1'})
    assert Query.parse(7) == Query.by_id(7)
    assert Query.parse(['a', 'b']) == Query(ids=['a', 'b'])
    assert Query.parse(None) == Query()


def test_parse_query_passthrough():
    q = Query(limit=3)
    assert Query.parse(q) is q


def test_composition_keys_stay_in_selector():
    q = Query.parse({'or$': [{'a': 1}], 'and$': [], 'or': 1})
    assert q.selector == {'or$': [{'a': 1}], 'and$': [], 'or': 1}


def test_entity_id_from_fields():
    entity = Entity('foo', fields={'id': 'foo1', 'p1': 'v1'})
    assert entity.id == 'foo1'
    assert entity.fields == {'p1': 'v1'}


def test_entity_canon():
    assert Entity('bar', base='moon', zone='zen').canon == 'zen/moon/bar'
    assert Entity('bar', base='moon').canon == '-/moon/bar'
    assert Entity('product').canon == '-/-/product'


def test_entity_make_and_with_id():
    template = Entity('bar', base='moon')
    made = template.make({'str': 'x'}, id='b1')
    assert (made.base, made.name, made.id) == ('moon', 'bar', 'b1')

    pending = Entity('foo', fields={'p1': 'v'}, new_id='foo9')
    saved = pending.with_id('foo9')
    assert saved.id == 'foo9'
    assert saved.new_id is None
    assert saved.fields == pending.fields
    assert saved.fields is not pending.fields


def test_native_statement():
    assert native_statement('select 1') == ('select 1', ())
    assert native_statement(('select ?', [1])) == ('select ?', (1,))
    assert native_statement(['select 1', None]) == ('select 1', ())


@pytest.mark.parametrize('native', [42, '', '   ', ['select 1'], [1, []], ['select ?', 'a'], ('a', 'b', 'c')])
def test_native_statement_invalid(native):
    with pytest.raises(TranslationError):
        native_statement(native)
