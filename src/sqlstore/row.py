"""Result rows to entities."""
import logging
from collections.abc import Sequence
from typing import Any

from sqlstore.entity import Entity
from sqlstore.exceptions import MappingError
from sqlstore.mapping import ColumnMapper
from sqlstore.names import ID_COLUMN

from libb import attrdict

logger = logging.getLogger(__name__)


class RowMapper:
    """Converts result rows to field dictionaries and entities.

    Column names are mapped once per result set, then zipped with each row.
    """

    def __init__(self, mapper: ColumnMapper, columns: Sequence[str]) -> None:
        self.columns = list(columns)
        self.fields = mapper.fields(self.columns)
        if len(set(self.fields)) != len(self.fields):
            raise MappingError(f'Columns {self.columns} map to duplicate fields {self.fields}')

    def to_dict(self, row: Sequence[Any]) -> attrdict:
        if len(row) != len(self.fields):
            raise MappingError(f'Row has {len(row)} values for {len(self.fields)} columns')
        return attrdict(zip(self.fields, row))

    def to_entity(self, template: Entity, row: Sequence[Any]) -> Entity:
        """Entity in the template's namespace; the id column becomes its id."""
        fields = self.to_dict(row)
        id = fields.pop(ID_COLUMN, None)
        return template.make(fields, id=id)

    def to_entities(self, template: Entity, rows: Sequence[Sequence[Any]]) -> list[Entity]:
        entities = [self.to_entity(template, row) for row in rows]
        logger.debug(f'Mapped {len(entities)} rows to {template.canon} entities')
        return entities
