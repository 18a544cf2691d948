"""
Query descriptor.

`Query.parse` accepts the flat form callers usually write, where modifiers
are keys suffixed with `$` and everything else is selector content:

>>> q = Query.parse({'price': {'gte$': 200}, 'sort$': {'price': 1}, 'limit$': 1})
>>> q.selector, q.sort, q.limit
({'price': {'gte$': 200}}, {'price': 1}, 1)

A bare scalar means an id lookup, a list means an `ids` lookup.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlstore.names import ID_COLUMN

DIRECTIVES = {
    'sort$': 'sort',
    'limit$': 'limit',
    'skip$': 'skip',
    'fields$': 'fields',
    'all$': 'all',
    'native$': 'native',
    'load$': 'load',
    'ids': 'ids',
    }


@dataclass
class Query:
    selector: dict[str, Any] = field(default_factory=dict)
    sort: Mapping[str, Any] | None = None
    limit: int | None = None
    skip: int | None = None
    fields: list[str] | None = None
    ids: list[Any] | None = None
    all: bool = False
    native: str | tuple | list | None = None
    load: bool = False

    @classmethod
    def parse(cls, q: Any = None) -> 'Query':
        if q is None:
            return cls()
        if isinstance(q, Query):
            return q
        if isinstance(q, (list, tuple)):
            return cls(ids=list(q))
        if not isinstance(q, Mapping):
            return cls(selector={ID_COLUMN: q})

        selector = {}
        modifiers = {}
        for key, value in q.items():
            if key in DIRECTIVES:
                modifiers[DIRECTIVES[key]] = value
            else:
                selector[key] = value
        return cls(selector=selector, **modifiers)

    @classmethod
    def by_id(cls, id: Any) -> 'Query':
        return cls(selector={ID_COLUMN: id})
