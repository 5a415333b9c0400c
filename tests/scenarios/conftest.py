"""
Scenario test fixtures

Scenarios walk traders and keepers through complete flows on the in-memory
venue, following Given-When-Then.
"""
from decimal import Decimal

import pytest_asyncio

SECOND_ACCOUNT_ID = 2


@pytest_asyncio.fixture
async def two_traders(venue):
    """Venue with a second account (owned by `stranger`) funded with 10000 USDC."""
    venue.identity.create_account(SECOND_ACCOUNT_ID, owner=venue.stranger)
    venue.custody.mint(venue.usdc, venue.stranger, Decimal("10000"))
    return venue
