import pytest
from sqlstore.entity import Entity
from sqlstore.exceptions import MappingError, TranslationError
from sqlstore.mapping import ColumnMapper, camel_to_snake, snake_to_camel
from sqlstore.names import resolve_table, table_name, validate_identifier


def test_table_name_parts():
    """Test present zone, base and name parts are joined"""
    assert table_name(Entity('bar', base='moon', zone='zen')) == 'zen_moon_bar'
    assert table_name(Entity('bar', base='moon')) == 'moon_bar'
    assert table_name(Entity('bar', zone='zen')) == 'zen_bar'
    assert table_name(Entity('product')) == 'product'


def test_table_name_separator():
    assert table_name(Entity('bar', base='moon'), separator='__') == 'moon__bar'


def test_resolve_table_quotes():
    assert resolve_table(Entity('product')) == '"product"'
    assert resolve_table(Entity('a"b'), 'sqlite') == '"a""b"'


def test_table_name_not_mapped():
    """Test table names bypass column mapping"""
    assert table_name(Entity('fooBar')) == 'fooBar'


@pytest.mark.parametrize('entity', [
    Entity(''),
    Entity(None),
    Entity('bar', base='  '),
    Entity('ba\x00r'),
    Entity('bar', zone=5),
    ])
def test_invalid_table_names(entity):
    with pytest.raises(TranslationError):
        table_name(entity)


def test_validate_identifier():
    assert validate_identifier('price') == 'price'
    with pytest.raises(TranslationError):
        validate_identifier('')
    with pytest.raises(TranslationError):
        validate_identifier(None)


def test_camel_snake():
    assert camel_to_snake('barFoo') == 'bar_foo'
    assert camel_to_snake('bar') == 'bar'
    assert snake_to_camel('bar_foo') == 'barFoo'
    assert snake_to_camel('bar_foo_baz') == 'barFooBaz'


def test_mapper_identity():
    mapper = ColumnMapper()
    assert mapper.column('camelCase') == 'camelCase'
    assert mapper.field('snake_case') == 'snake_case'


def test_mapper_id_never_mapped():
    mapper = ColumnMapper(str.upper, str.lower)
    assert mapper.column('id') == 'id'
    assert mapper.field('id') == 'id'
    assert mapper.column('name') == 'NAME'
    assert mapper.fields(['id', 'NAME']) == ['id', 'name']


def test_mapper_failures():
    def broken(name):
        raise RuntimeError('nope')

    mapper = ColumnMapper(broken, broken)
    with pytest.raises(TranslationError):
        mapper.column('name')
    with pytest.raises(MappingError):
        mapper.field('name')


def test_mapper_invalid_results():
    mapper = ColumnMapper(lambda f: '', lambda c: None)
    with pytest.raises(TranslationError):
        mapper.column('name')
    with pytest.raises(MappingError):
        mapper.field('name')
