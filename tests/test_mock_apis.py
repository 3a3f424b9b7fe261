"""
Unit tests for MockPlatformAPI.

Tests campaign generation, the paginated report endpoint and the
mutation endpoints.
"""

import pytest
from datetime import date
from decimal import Decimal

from campaign_optimizer.api.mock_platform_api import MockPlatformAPI
from campaign_optimizer.api.report_source import ReportRequest
from campaign_optimizer.errors import ActuationError
from campaign_optimizer.models.platform import Platform


def request(page_size=500, statuses=("ENABLED",)):
    return ReportRequest(date(2026, 9, 1), date(2026, 9, 30), entity_filter=statuses, page_size=page_size)


class TestCampaignGeneration:
    """Test generated mock campaigns."""

    @pytest.fixture
    def google_api(self):
        """Create Google platform API with fixed seed."""
        return MockPlatformAPI(Platform.GOOGLE, num_campaigns=20, seed=42)

    def test_initialization(self, google_api):
        assert google_api.platform == Platform.GOOGLE
        assert google_api.num_campaigns == 20
        assert len(google_api.campaigns) == 20

    def test_report_format(self, google_api):
        """Test that money is reported in integer micros."""
        for campaign in google_api.campaigns:
            metrics = campaign["metrics"]
            assert campaign["campaign_id"].startswith("google_")
            assert isinstance(metrics["cost_micros"], int)
            assert metrics["impressions"] >= 0
            if metrics["conversions"]:
                assert isinstance(metrics["cost_per_conversion"], int)
            else:
                assert metrics["cost_per_conversion"] is None

    def test_seed_reproducibility(self):
        api1 = MockPlatformAPI(Platform.META, num_campaigns=10, seed=123)
        api2 = MockPlatformAPI(Platform.META, num_campaigns=10, seed=123)
        assert api1.campaigns == api2.campaigns

    def test_dark_campaigns_have_no_spend(self, google_api):
        for campaign in google_api.campaigns:
            if campaign["scenario"] == "dark":
                assert campaign["metrics"]["impressions"] == 0
                assert campaign["metrics"]["cost_micros"] == 0

    def test_summary_stats(self, google_api):
        stats = google_api.get_summary_stats()

        assert stats["platform"] == "google"
        assert stats["total_campaigns"] == 20
        assert stats["enabled_campaigns"] == 20
        assert stats["paused_campaigns"] == 0
        assert sum(stats["scenario_distribution"].values()) == 20


class TestExplicitCampaigns:
    """Test campaigns supplied in dollar terms."""

    def test_dollars_converted_to_micros(self, make_campaign):
        api = MockPlatformAPI(campaigns=[make_campaign("A", cost=12.34, conversions=2, bid=0.75)])
        metrics = api.campaigns[0]["metrics"]

        assert metrics["cost_micros"] == 12_340_000
        assert metrics["cost_per_conversion"] == 6_170_000
        assert api.get_campaign_bid_micros("A") == 750_000

    def test_explicit_cost_per_conversion(self, make_campaign):
        api = MockPlatformAPI(campaigns=[make_campaign("B", cost=500, conversions=2, cost_per_conversion=150)])
        assert api.campaigns[0]["metrics"]["cost_per_conversion"] == 150_000_000

    def test_micro_fields_pass_through(self):
        api = MockPlatformAPI(campaigns=[{"campaign_id": "M", "cost_micros": 7, "conversions": 0}])
        assert api.campaigns[0]["metrics"]["cost_micros"] == 7


class TestReportEndpoint:
    """Test fetch_page."""

    @pytest.fixture
    def api(self, make_campaign):
        return MockPlatformAPI(campaigns=[
            make_campaign("c3", cost=1, conversions=0),
            make_campaign("c1", cost=1, conversions=0),
            make_campaign("c2", cost=1, conversions=0, status="PAUSED"),
        ])

    def test_ordered_and_filtered(self, api):
        page = api.fetch_page(request())

        assert [r["campaign_id"] for r in page.rows] == ["c1", "c3"]
        assert page.next_page_token is None

    def test_status_filter(self, api):
        page = api.fetch_page(request(statuses=("ENABLED", "PAUSED")))
        assert [r["campaign_id"] for r in page.rows] == ["c1", "c2", "c3"]

    def test_continuation_token(self, api):
        first = api.fetch_page(request(page_size=1))
        second = api.fetch_page(request(page_size=1), first.next_page_token)

        assert first.next_page_token == "offset:1"
        assert [r["campaign_id"] for r in second.rows] == ["c3"]
        assert second.next_page_token is None
        assert api.page_requests == [None, "offset:1"]

    def test_unknown_token(self, api):
        with pytest.raises(ValueError):
            api.fetch_page(request(), "bogus")

    def test_failing_page(self, make_campaign):
        api = MockPlatformAPI(campaigns=[make_campaign("c1", cost=1, conversions=0)], fail_on_pages=[1])
        with pytest.raises(ConnectionError):
            api.fetch_page(request())

    def test_rows_are_copies(self, api):
        page = api.fetch_page(request())
        page.rows[0]["metrics"]["cost_micros"] = -1
        assert api.campaigns[1]["metrics"]["cost_micros"] == 1_000_000


class TestMutations:
    """Test pause and bid endpoints."""

    @pytest.fixture
    def api(self, make_campaign):
        return MockPlatformAPI(
            campaigns=[make_campaign(c, cost=1, conversions=0, bid=1.25) for c in ("A", "B", "C")],
            failing_campaigns=["B"],
            rejecting_campaigns=["C"],
        )

    def test_pause_and_resume(self, api):
        assert api.pause_campaign("A") is True
        assert api.get_campaign_status("A") == "PAUSED"
        assert api.pause_campaign("A") is True

        assert api.resume_campaign("A") is True
        assert api.get_campaign_status("A") == "ENABLED"

    def test_reduce_bid_rounds_half_up(self, api):
        """Test that $1.25 lowered by 30% becomes exactly 875,000 micros."""
        assert api.reduce_campaign_bid("A", Decimal("0.3")) is True
        assert api.get_campaign_bid_micros("A") == 875_000

    def test_invalid_fraction(self, api):
        with pytest.raises(ActuationError):
            api.reduce_campaign_bid("A", Decimal("1"))

    def test_failing_campaign_raises(self, api):
        with pytest.raises(ActuationError) as exc_info:
            api.pause_campaign("B")
        assert exc_info.value.campaign_id == "B"

    def test_rejecting_and_unknown_campaigns(self, api):
        assert api.pause_campaign("C") is False
        assert api.pause_campaign("missing") is False
        assert api.get_campaign_status("missing") is None
        assert api.resume_campaign("missing") is False

    def test_mutation_log(self, api):
        api.pause_campaign("A")
        api.pause_campaign("C")

        assert api.mutation_log == [
            {"campaign_id": "A", "action": "pause_campaign", "success": True},
            {"campaign_id": "C", "action": "pause_campaign", "success": False},
        ]
        assert api.list_campaign_ids() == ["A", "B", "C"]
