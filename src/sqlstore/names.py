"""
Entity namespace to physical table resolution.
"""
from typing import TYPE_CHECKING

from sqlstore.exceptions import TranslationError
from sqlstore.sql import quote_identifier

if TYPE_CHECKING:
    from sqlstore.entity import Entity

ID_COLUMN = 'id'
DEFAULT_SEPARATOR = '_'


def validate_identifier(name: str, kind: str = 'column') -> str:
    """Reject names that cannot be embedded as a quoted identifier.
    """
    if not isinstance(name, str) or not name.strip():
        raise TranslationError(f'Invalid {kind} identifier: {name!r}')
    if '\x00' in name:
        raise TranslationError(f'{kind.capitalize()} identifier contains NUL: {name!r}')
    return name


def table_name(entity: 'Entity', separator: str = DEFAULT_SEPARATOR) -> str:
    """Join the present zone, base and name parts of an entity namespace.

    >>> from sqlstore.entity import Entity
    >>> table_name(Entity('bar', base='moon', zone='zen'))
    'zen_moon_bar'
    >>> table_name(Entity('product'))
    'product'
    """
    parts = []
    for part in (entity.zone, entity.base, entity.name):
        if part is None or part == '':
            continue
        parts.append(validate_identifier(part, 'table'))
    if entity.name is None or entity.name == '':
        raise TranslationError(f'Entity has no name: {entity.canon}')
    return separator.join(parts)


def resolve_table(entity: 'Entity', dialect: str = 'postgresql',
                  separator: str = DEFAULT_SEPARATOR) -> str:
    """Quoted physical table identifier for an entity.

    Table naming is independent of column mapping; the entity name is used
    as written.
    """
    return quote_identifier(table_name(entity, separator), dialect)
