"""
Modifier compilation: ORDER BY, LIMIT, OFFSET and projection.
"""
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlstore.exceptions import TranslationError
from sqlstore.mapping import ColumnMapper
from sqlstore.names import ID_COLUMN

if TYPE_CHECKING:
    from sqlstore.strategy.base import DatabaseStrategy
    from sqlstore.translate import ParamList, Translator

DIRECTIONS = {
    1: 'ASC',
    -1: 'DESC',
    'asc': 'ASC',
    'desc': 'DESC',
    }


def _direction(field: str, value: Any) -> str:
    key = value.lower() if isinstance(value, str) else value
    if isinstance(key, bool) or not isinstance(key, (int, str)) or key not in DIRECTIONS:
        raise TranslationError(f'Invalid sort direction {value!r} for field {field!r}')
    return DIRECTIONS[key]


def non_negative(name: str, value: Any) -> int:
    """Validate a limit/skip value; None counts as 0."""
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise TranslationError(f'{name} must be a non-negative integer, got {value!r}')
    return value


def compile_order_by(sort: Mapping[str, Any] | None, translator: 'Translator') -> str:
    """ORDER BY body in the mapping's iteration order.

    >>> from sqlstore.translate import Translator
    >>> compile_order_by({'price': 1, 'name': -1}, Translator(ColumnMapper()))
    '"price" ASC, "name" DESC'
    """
    if not sort:
        return ''
    if not isinstance(sort, Mapping):
        raise TranslationError(f'sort expects a mapping of field to direction, got {type(sort).__name__}')
    return ', '.join(
        f'{translator.column(field)} {_direction(field, direction)}'
        for field, direction in sort.items())


def compile_paging(limit: Any, skip: Any, params: 'ParamList',
                   strategy: 'DatabaseStrategy') -> str:
    """LIMIT / OFFSET clause with both values bound as parameters.

    Zero or absent means no clause. The dialect decides how an OFFSET
    without LIMIT is written.
    """
    limit = non_negative('limit', limit)
    skip = non_negative('skip', skip)
    limit_ph = params.bind(limit) if limit else None
    offset_ph = params.bind(skip) if skip else None
    return strategy.limit_offset(limit_ph, offset_ph)


def compile_projection(fields: Any, mapper: ColumnMapper) -> list[str] | None:
    """Columns to select, or None for every column.

    The id column is always fetched so mapped entities keep their id.
    """
    if fields is None:
        return None
    if isinstance(fields, (str, bytes)) or not hasattr(fields, '__iter__'):
        raise TranslationError(f'fields expects a list of field names, got {type(fields).__name__}')
    columns = [mapper.column(field) for field in fields]
    if not columns:
        return None
    if ID_COLUMN not in columns:
        columns.insert(0, ID_COLUMN)
    return list(dict.fromkeys(columns))
