"""
Selector tree to WHERE clause translation.

Values are always bound through a `ParamList`; the SQL only ever contains
quoted identifiers, operators and placeholders. Placeholders are numbered
in the order values are appended.
"""
import logging
from collections.abc import Callable
from typing import Any

from sqlstore.exceptions import TranslationError
from sqlstore.mapping import ColumnMapper
from sqlstore.names import ID_COLUMN
from sqlstore.selector import And, Leaf, Node, Or, is_scalar
from sqlstore.sql import FALSE, TRUE, quote_identifier

logger = logging.getLogger(__name__)

COMPARISONS = {
    'eq': '=',
    'ne': '<>',
    'gt': '>',
    'gte': '>=',
    'lt': '<',
    'lte': '<=',
    }


class ParamList:
    """Append-only parameter accumulator.

    `bind` appends a value and returns the placeholder that refers to it;
    `placeholder` receives the 1-based position of the value.
    """

    def __init__(self, placeholder: Callable[[int], str]) -> None:
        self.values: list[Any] = []
        self._placeholder = placeholder

    def bind(self, value: Any) -> str:
        self.values.append(value)
        return self._placeholder(len(self.values))

    def bind_all(self, values) -> list[str]:
        return [self.bind(value) for value in values]

    def __len__(self) -> int:
        return len(self.values)


class Translator:
    """Compile selector trees for one dialect and column mapping.
    """

    def __init__(self, mapper: ColumnMapper, dialect: str = 'postgresql') -> None:
        self.mapper = mapper
        self.dialect = dialect

    def column(self, field: str) -> str:
        return quote_identifier(self.mapper.column(field), self.dialect)

    def where(self, root: And, params: ParamList, ids=None) -> str:
        """Top-level WHERE fragment (without the keyword), '' when unrestricted.

        Top-level keys are AND-ed without surrounding parentheses; an `ids`
        list adds `id IN (...)`.
        """
        parts = [self.translate(child, params) for child in root.children]
        if ids is not None:
            parts.append(self.membership(ID_COLUMN, 'in', _id_list(ids), params))
        return ' AND '.join(parts)

    def translate(self, node: Node, params: ParamList) -> str:
        if isinstance(node, Leaf):
            return self.leaf(node, params)
        if isinstance(node, (And, Or)):
            parts = [self.translate(child, params) for child in node.children]
            if not parts:
                return FALSE if isinstance(node, Or) else TRUE
            if len(parts) == 1:
                return parts[0]
            joiner = ' OR ' if isinstance(node, Or) else ' AND '
            return '(' + joiner.join(parts) + ')'
        raise TranslationError(f'Unknown selector node: {node!r}')

    def leaf(self, leaf: Leaf, params: ParamList) -> str:
        if leaf.op in ('in', 'nin'):
            return self.membership(leaf.field, leaf.op, leaf.value, params)

        comparison = COMPARISONS.get(leaf.op)
        if comparison is None:
            raise TranslationError(f'Unknown operator {leaf.op!r} for field {leaf.field!r}')
        if not is_scalar(leaf.value):
            raise TranslationError(f'{leaf.op} on {leaf.field!r} expects a scalar value')

        column = self.column(leaf.field)
        if leaf.value is None:
            if leaf.op == 'eq':
                return f'{column} IS NULL'
            if leaf.op == 'ne':
                return f'{column} IS NOT NULL'
            raise TranslationError(f'{leaf.op} on {leaf.field!r} cannot compare with None')
        return f'{column} {comparison} {params.bind(leaf.value)}'

    def membership(self, field: str, op: str, values, params: ParamList) -> str:
        """IN / NOT IN; an empty list never renders a zero-arity IN ()."""
        column = self.column(field)
        values = list(values)
        if not values:
            return FALSE if op == 'in' else TRUE
        placeholders = ', '.join(params.bind_all(values))
        keyword = 'IN' if op == 'in' else 'NOT IN'
        return f'{column} {keyword} ({placeholders})'


def _id_list(ids) -> list:
    if isinstance(ids, (str, bytes)) or not hasattr(ids, '__iter__'):
        raise TranslationError(f'ids expects a list, got {type(ids).__name__}')
    ids = list(ids)
    for value in ids:
        if value is None or not is_scalar(value):
            raise TranslationError(f'ids expects scalar items, got {value!r}')
    return ids
