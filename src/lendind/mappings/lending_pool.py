from __future__ import annotations

from lendind.core.events import PositionClosedEvent, PositionCreatedEvent, RepaidEvent
from lendind.core.interfaces import IEntityStore
from lendind.core.models import PositionClosed, PositionCreated, Repaid, entity_id


def handle_position_closed(event: PositionClosedEvent, store: IEntityStore) -> PositionClosed:
    entity = PositionClosed(
        id=entity_id(event.transaction.hash, event.log_index),
        user=event.params.user,
        block_number=event.block.number,
        block_timestamp=event.block.timestamp,
        transaction_hash=event.transaction.hash,
    )
    store.save(entity)
    return entity


def handle_position_created(event: PositionCreatedEvent, store: IEntityStore) -> PositionCreated:
    entity = PositionCreated(
        id=entity_id(event.transaction.hash, event.log_index),
        user=event.params.user,
        timestamp=event.params.timestamp,
        block_number=event.block.number,
        block_timestamp=event.block.timestamp,
        transaction_hash=event.transaction.hash,
    )
    store.save(entity)
    return entity


def handle_repaid(event: RepaidEvent, store: IEntityStore) -> Repaid:
    entity = Repaid(
        id=entity_id(event.transaction.hash, event.log_index),
        user=event.params.user,
        amount=event.params.amount,
        block_number=event.block.number,
        block_timestamp=event.block.timestamp,
        transaction_hash=event.transaction.hash,
    )
    store.save(entity)
    return entity
