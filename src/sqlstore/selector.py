"""
Selector parsing.

Turns the dictionary selector grammar into a tagged tree before any SQL is
written:

    {'price': {'gte$': 200}, 'or$': [{'name': 'cherry'}, {'price': 300}]}

    And((Leaf('price', 'gte', 200),
         Or((And((Leaf('name', 'eq', 'cherry'),)),
             And((Leaf('price', 'eq', 300),))))))

Only `or$` and `and$` compose; any other key is a field name, so a column
literally called `or` is an ordinary leaf. Operator maps accept each
operator with or without the `$` suffix.
"""
import datetime
import decimal
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlstore.exceptions import TranslationError

from libb import issequence

OPERATORS = ('eq', 'ne', 'gt', 'gte', 'lt', 'lte', 'in', 'nin')
LIST_OPERATORS = frozenset({'in', 'nin'})
OR = 'or$'
AND = 'and$'

SCALAR_TYPES = (str, bytes, int, float, bool, decimal.Decimal, uuid.UUID,
                datetime.date, datetime.datetime, datetime.time, datetime.timedelta)


@dataclass(frozen=True, slots=True)
class Leaf:
    field: str
    op: str
    value: Any


@dataclass(frozen=True, slots=True)
class And:
    children: tuple = ()


@dataclass(frozen=True, slots=True)
class Or:
    children: tuple = ()


Node = Leaf | And | Or


def is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, SCALAR_TYPES)


def is_value_list(value: Any) -> bool:
    if isinstance(value, (set, frozenset)):
        return True
    return issequence(value) and not isinstance(value, (str, bytes))


def operator_name(key: str) -> str | None:
    """Operator for an operator-map key, or None when the key is not one."""
    if not isinstance(key, str):
        return None
    name = key[:-1] if key.endswith('$') else key
    return name if name in OPERATORS else None


def parse_selector(selector: Mapping[str, Any] | None) -> And:
    """Parse a selector mapping into a conjunction of its keys.

    Raises
        TranslationError: on unknown operators, malformed composition or
            non-scalar values where a scalar is expected
    """
    if selector is None:
        return And()
    if not isinstance(selector, Mapping):
        raise TranslationError(f'Selector must be a mapping, got {type(selector).__name__}')

    children = []
    for key, value in selector.items():
        if key in (OR, AND):
            children.append(_parse_composite(key, value))
        else:
            children.extend(_parse_field(key, value))
    return And(tuple(children))


def _parse_composite(key: str, value: Any) -> Node:
    if not is_value_list(value) or isinstance(value, (set, frozenset)):
        raise TranslationError(f'{key} expects a list of selectors, got {type(value).__name__}')
    nodes = []
    for child in value:
        if not isinstance(child, Mapping):
            raise TranslationError(f'{key} children must be selectors, got {type(child).__name__}')
        nodes.append(parse_selector(child))
    return Or(tuple(nodes)) if key == OR else And(tuple(nodes))


def _parse_field(field: Any, value: Any) -> list[Leaf]:
    if not isinstance(field, str) or not field:
        raise TranslationError(f'Invalid selector field: {field!r}')
    if field.endswith('$'):
        raise TranslationError(f'Unknown selector directive: {field}')

    if isinstance(value, Mapping):
        if not value:
            raise TranslationError(f'Empty operator map for field {field!r}')
        leaves = []
        for key, operand in value.items():
            op = operator_name(key)
            if op is None:
                raise TranslationError(f'Unknown operator {key!r} for field {field!r}')
            leaves.append(Leaf(field, op, _operand(field, op, operand)))
        return leaves

    return [Leaf(field, 'eq', _operand(field, 'eq', value))]


def _operand(field: str, op: str, value: Any) -> Any:
    if op in LIST_OPERATORS:
        if not is_value_list(value):
            raise TranslationError(f'{op} on {field!r} expects a list, got {type(value).__name__}')
        values = list(value)
        for item in values:
            if item is None or not is_scalar(item):
                raise TranslationError(f'{op} on {field!r} expects scalar items, got {item!r}')
        return tuple(values)

    if not is_scalar(value):
        raise TranslationError(f'{op} on {field!r} expects a scalar, got {type(value).__name__}')
    if value is None and op not in {'eq', 'ne'}:
        raise TranslationError(f'{op} on {field!r} cannot compare with None')
    return value
