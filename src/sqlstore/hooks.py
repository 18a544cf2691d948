"""
Pre-insert id generation hooks.

Handlers are registered per `(role, target)` key before the store serves
requests. A handler receives a copy of the pending entity's field values
and returns the new id, either directly or as `{'id': ...}`.
"""
import logging
from collections.abc import Callable, Mapping
from typing import Any

from sqlstore.exceptions import IdGenerationError, Phase
from sqlstore.names import ID_COLUMN

logger = logging.getLogger(__name__)

IdHandler = Callable[[dict[str, Any]], Any]

DEFAULT_ROLE = 'sql'
DEFAULT_TARGET = 'postgresql-store'


class IdHookRegistry:
    """One id generation handler per `(role, target)` key.
    """

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], IdHandler] = {}

    def register(self, role: str, target: str, handler: IdHandler) -> tuple[str, str]:
        """Register `handler`, replacing any handler already on the key.
        """
        if not callable(handler):
            raise TypeError(f'id hook handler must be callable, got {type(handler).__name__}')
        key = (role, target)
        if key in self._handlers:
            logger.debug(f'Replacing id hook for role={role} target={target}')
        self._handlers[key] = handler
        return key

    def unregister(self, role: str, target: str) -> None:
        self._handlers.pop((role, target), None)

    def get(self, role: str, target: str) -> IdHandler | None:
        return self._handlers.get((role, target))

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def generate(self, role: str, target: str, fields: Mapping[str, Any]) -> Any:
        """Invoke the handler for the key, or return None when there is none.

        Raises
            IdGenerationError: if the handler raises or produces no id
        """
        handler = self.get(role, target)
        if handler is None:
            return None
        try:
            result = handler(dict(fields))
        except Exception as e:
            raise IdGenerationError(f'id hook {role}/{target} failed: {e}',
                                    phase=Phase.BUILD) from e
        if isinstance(result, Mapping):
            result = result.get(ID_COLUMN)
        if result is None:
            raise IdGenerationError(f'id hook {role}/{target} returned no id',
                                    phase=Phase.BUILD)
        logger.debug(f'id hook {role}/{target} generated id {result!r}')
        return result
