"""Test-data builders for LendingPool events."""

from lendind.core.config import MOCK_ADDRESS, MockEventDefaults
from lendind.testing.events import (
    create_position_closed_event,
    create_position_created_event,
    create_repaid_event,
    new_mock_event,
)

__all__ = [
    "MOCK_ADDRESS",
    "MockEventDefaults",
    "create_position_closed_event",
    "create_position_created_event",
    "create_repaid_event",
    "new_mock_event",
]
