from dataclasses import replace

import pytest
from pydantic import ValidationError

from lendind.core.config import MOCK_ADDRESS, MockEventDefaults
from lendind.core.errors import UnknownEventError
from lendind.core.models import PositionClosed, PositionCreated, Repaid, entity_id
from lendind.mappings import dispatch, handle_position_closed, handle_position_created, handle_repaid
from lendind.storage.memory import InMemoryEntityStore
from lendind.testing import (
    create_position_closed_event,
    create_position_created_event,
    create_repaid_event,
    new_mock_event,
)

USER_1 = "0x0000000000000000000000000000000000000001"
USER_2 = "0x0000000000000000000000000000000000000002"


def test_entity_id_appends_little_endian_log_index() -> None:
    tx = "0x" + "ab" * 32
    assert entity_id(tx, 1) == tx + "01000000"
    assert entity_id(tx, 256) == tx + "00010000"
    assert entity_id(tx, -1) == tx + "ffffffff"


def test_entity_id_is_deterministic() -> None:
    assert entity_id(MOCK_ADDRESS, 7) == entity_id(MOCK_ADDRESS, 7)
    assert entity_id(MOCK_ADDRESS, 7) != entity_id(MOCK_ADDRESS, 8)


def test_position_created_stored(store: InMemoryEntityStore) -> None:
    event = create_position_created_event(USER_1, 1234)
    handle_position_created(event, store)

    expected_id = entity_id(MOCK_ADDRESS, 1)
    assert store.count(PositionCreated) == 1
    store.assert_field_equals(PositionCreated, expected_id, "user", USER_1)
    store.assert_field_equals(PositionCreated, expected_id, "timestamp", 1234)


def test_repaid_stored(store: InMemoryEntityStore) -> None:
    event = create_repaid_event(USER_2, 500)
    entity = handle_repaid(event, store)

    assert store.count(Repaid) == 1
    assert store.get(Repaid, entity.id) == entity
    store.assert_field_equals(Repaid, entity.id, "user", USER_2)
    store.assert_field_equals(Repaid, entity.id, "amount", 500)


def test_position_closed_stored(store: InMemoryEntityStore) -> None:
    entity = handle_position_closed(create_position_closed_event(USER_1), store)

    assert store.count(PositionClosed) == 1
    assert entity.user == USER_1
    assert store.count(PositionCreated) == 0


def test_provenance_copied_from_event(store: InMemoryEntityStore) -> None:
    defaults = MockEventDefaults(
        block_number=42,
        block_timestamp=1_650_000_000,
        transaction_hash="0x" + "cd" * 32,
        log_index=3,
    )
    entity = handle_repaid(create_repaid_event(USER_1, 10, defaults=defaults), store)

    assert entity.id == entity_id("0x" + "cd" * 32, 3)
    assert entity.block_number == 42
    assert entity.block_timestamp == 1_650_000_000
    assert entity.transaction_hash == "0x" + "cd" * 32


def test_same_log_overwrites(store: InMemoryEntityStore) -> None:
    handle_repaid(create_repaid_event(USER_1, 10), store)
    handle_repaid(create_repaid_event(USER_1, 20), store)

    assert store.count(Repaid) == 1
    store.assert_field_equals(Repaid, entity_id(MOCK_ADDRESS, 1), "amount", 20)


def test_distinct_logs_in_same_tx_are_distinct_entities(store: InMemoryEntityStore) -> None:
    first = MockEventDefaults(log_index=1)
    second = replace(first, log_index=2)
    handle_position_closed(create_position_closed_event(USER_1, defaults=first), store)
    handle_position_closed(create_position_closed_event(USER_1, defaults=second), store)

    assert store.count(PositionClosed) == 2


def test_zero_amount_and_large_amount(store: InMemoryEntityStore) -> None:
    handle_repaid(create_repaid_event(USER_1, 0, defaults=MockEventDefaults(log_index=1)), store)
    handle_repaid(create_repaid_event(USER_1, 2**256 - 1, defaults=MockEventDefaults(log_index=2)), store)

    assert store.get(Repaid, entity_id(MOCK_ADDRESS, 1)).amount == 0
    assert store.get(Repaid, entity_id(MOCK_ADDRESS, 2)).amount == 2**256 - 1


def test_user_address_is_lowercased() -> None:
    event = create_position_closed_event("0xA16081F360E3847006DB660BAE1C6D1B2E17EC2A")
    assert event.params.user == MOCK_ADDRESS


def test_invalid_params_rejected() -> None:
    with pytest.raises(ValidationError):
        create_position_closed_event("not-an-address")
    with pytest.raises(ValidationError):
        create_repaid_event(USER_1, -1)


def test_event_parameters_follow_declaration_order() -> None:
    event = create_position_created_event(USER_1, 1234)
    assert [(p.name, p.value) for p in event.parameters] == [("user", USER_1), ("timestamp", 1234)]


def test_dispatch_routes_by_name(store: InMemoryEntityStore) -> None:
    entity = dispatch(create_position_created_event(USER_1, 99), store)

    assert isinstance(entity, PositionCreated)
    assert store.count(PositionCreated) == 1


def test_dispatch_unknown_event(store: InMemoryEntityStore) -> None:
    event = new_mock_event("Liquidated", create_position_closed_event(USER_1).params)

    with pytest.raises(UnknownEventError):
        dispatch(event, store)
    assert store.count(PositionClosed) == 0
