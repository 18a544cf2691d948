"""
Column name mapping between logical field names and physical column names.

A `ColumnMapper` is configured once per store. Every field embedded in SQL
goes through `to_column`; every column read back from a result set,
including native queries, goes through `from_column`. The reserved `id`
field is never mapped.
"""
import re
from collections.abc import Callable
from dataclasses import dataclass

from sqlstore.exceptions import MappingError, TranslationError
from sqlstore.names import ID_COLUMN, validate_identifier

_UPPER = re.compile(r'[A-Z]')


def identity(name: str) -> str:
    return name


def camel_to_snake(field: str) -> str:
    """Replace "camelCase" with "camel_case".

    >>> camel_to_snake('barFoo')
    'bar_foo'
    """
    return _UPPER.sub(lambda m: '_' + m.group(0).lower(), field)


def snake_to_camel(column: str) -> str:
    """Replace "snake_case" with "snakeCase".

    >>> snake_to_camel('bar_foo')
    'barFoo'
    """
    head, *rest = column.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


@dataclass(frozen=True)
class ColumnMapper:
    """Bidirectional field/column translation pair.

    Round trips only hold for pairs that are inverses of each other, such as
    `camel_snake()`. The mapper does not assume one.
    """
    to_column: Callable[[str], str] = identity
    from_column: Callable[[str], str] = identity

    @classmethod
    def camel_snake(cls) -> 'ColumnMapper':
        """camelCase fields stored in snake_case columns."""
        return cls(camel_to_snake, snake_to_camel)

    def column(self, field: str) -> str:
        """Resolve a logical field name to its column name.

        Raises
            TranslationError: if the field is not a valid name or the mapping fails
        """
        validate_identifier(field, 'field')
        if field == ID_COLUMN:
            return ID_COLUMN
        try:
            column = self.to_column(field)
        except Exception as e:
            raise TranslationError(f'Cannot map field {field!r} to a column: {e}') from e
        return validate_identifier(column)

    def field(self, column: str) -> str:
        """Resolve a result-set column name to its logical field name.

        Raises
            MappingError: if the mapping fails or yields an unusable name
        """
        if column == ID_COLUMN:
            return ID_COLUMN
        try:
            name = self.from_column(column)
        except Exception as e:
            raise MappingError(f'Cannot map column {column!r} to a field: {e}') from e
        if not isinstance(name, str) or not name:
            raise MappingError(f'Column {column!r} mapped to invalid field name {name!r}')
        return name

    def fields(self, columns: list[str]) -> list[str]:
        return [self.field(column) for column in columns]
