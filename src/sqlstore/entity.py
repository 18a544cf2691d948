"""Entity descriptor exchanged with callers."""
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from sqlstore.names import ID_COLUMN

from libb import attrdict


@dataclass
class Entity:
    """Logical record: namespace, optional id and ordered field values.

    An `id` in `fields` is moved to the `id` attribute. `new_id` asks `save`
    to insert with a caller-chosen id instead of updating.

    >>> ent = Entity('product', fields={'name': 'apple', 'price': 100})
    >>> ent.fields.price
    100
    >>> ent.canon
    '-/-/product'
    """
    name: str
    base: str | None = None
    zone: str | None = None
    id: Any = None
    fields: Mapping[str, Any] = field(default_factory=attrdict)
    new_id: Any = None

    def __post_init__(self) -> None:
        fields = attrdict(self.fields or {})
        if ID_COLUMN in fields:
            value = fields.pop(ID_COLUMN)
            if self.id is None:
                self.id = value
        self.fields = fields

    @property
    def canon(self) -> str:
        return '/'.join(part or '-' for part in (self.zone, self.base, self.name))

    def make(self, fields: Mapping[str, Any] | None = None, id: Any = None) -> 'Entity':
        """New entity in the same namespace."""
        return Entity(self.name, base=self.base, zone=self.zone, id=id, fields=fields or {})

    def with_id(self, id: Any) -> 'Entity':
        return replace(self, id=id, new_id=None, fields=attrdict(self.fields))

    def __repr__(self) -> str:
        return f'Entity({self.canon}, id={self.id!r}, fields={dict(self.fields)!r})'
