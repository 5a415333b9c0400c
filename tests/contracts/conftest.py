"""
Contract test fixtures

Contract tests drive the full in-memory venue (see tests/conftest.py) and
check guarantees that must hold after every operation.
"""
import pytest_asyncio


@pytest_asyncio.fixture
async def funded_venue(venue):
    """Venue with 1000 USDC deposited for the trading account."""
    await venue.deposit("1000")
    venue.events.clear()
    return venue
