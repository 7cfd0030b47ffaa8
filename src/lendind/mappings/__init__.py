"""Event handlers for the LendingPool contract.

Each handler projects one decoded event into one write-once entity and
saves it. `HANDLERS` plays the role of a subgraph manifest's
`eventHandlers` section: event name → (handler, entity type).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, NamedTuple

import structlog

from lendind.core.errors import UnknownEventError
from lendind.core.events import LendingPoolEvent
from lendind.core.interfaces import IEntityStore
from lendind.core.models import Entity, PositionClosed, PositionCreated, Repaid
from lendind.mappings.lending_pool import handle_position_closed, handle_position_created, handle_repaid

logger = structlog.get_logger(__name__)


class EventHandler(NamedTuple):
    handler: Callable[[Any, IEntityStore], Entity]
    entity_type: type[Entity]


HANDLERS: dict[str, EventHandler] = {
    "PositionClosed": EventHandler(handle_position_closed, PositionClosed),
    "PositionCreated": EventHandler(handle_position_created, PositionCreated),
    "Repaid": EventHandler(handle_repaid, Repaid),
}


def dispatch(event: LendingPoolEvent, store: IEntityStore) -> Entity:
    """Route `event` to its handler by event name."""
    entry = HANDLERS.get(event.name)
    if entry is None:
        raise UnknownEventError(f"no handler registered for {event.name}", {"event": event.name})
    entity = entry.handler(event, store)
    logger.debug("entity saved", entity=entry.entity_type.__name__, id=entity.id, block=event.block.number)
    return entity


__all__ = [
    "EventHandler",
    "HANDLERS",
    "dispatch",
    "handle_position_closed",
    "handle_position_created",
    "handle_repaid",
]
