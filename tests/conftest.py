"""
Shared fixtures: a controllable clock and campaign row builders.
"""

import pytest


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

    # Usable as a sleep() replacement
    sleep = advance


@pytest.fixture
def clock():
    """Fake monotonic clock starting at t=1000s."""
    return FakeClock()


def campaign(campaign_id, cost, conversions, impressions=1000, cost_per_conversion=None, **extra):
    """Helper to build a MockPlatformAPI campaign in dollar terms."""
    data = {
        "campaign_id": campaign_id,
        "campaign_name": f"Campaign {campaign_id}",
        "cost": cost,
        "conversions": conversions,
        "impressions": impressions,
    }
    if cost_per_conversion is not None:
        data["cost_per_conversion"] = cost_per_conversion
    data.update(extra)
    return data


@pytest.fixture
def make_campaign():
    """Factory for MockPlatformAPI campaign dictionaries."""
    return campaign


@pytest.fixture
def scenario_campaigns():
    """
    Three-campaign scenario.

    A: $1500 spent, 0 conversions        -> pause
    B: $500 spent, 2 conversions, CPA 150 -> reduce bid
    C: $800 spent, 1 conversion, CPA 50   -> no action
    """
    return [
        campaign("A", cost=1500, conversions=0),
        campaign("B", cost=500, conversions=2, cost_per_conversion=150),
        campaign("C", cost=800, conversions=1, cost_per_conversion=50),
    ]
