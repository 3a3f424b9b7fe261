"""
Mock advertising platform API.

Simulates a paginated performance report and the pause / bid mutation
endpoints so the optimizer can run end to end without real credentials.
"""

import random
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Iterable, Set

from campaign_optimizer.api.report_source import ReportPage, ReportRequest, campaign_sort_key
from campaign_optimizer.errors import ActuationError
from campaign_optimizer.models.platform import Platform


class MockPlatformAPI:
    """
    Simulated platform API with realistic behavior.

    Generates mock campaigns with varying performance patterns:
    - Healthy campaigns (converting at an acceptable cost)
    - Wasted spend campaigns (large spend, zero conversions)
    - High CPA campaigns (converting, but expensively)
    - Low spend campaigns (too little data to judge)
    - Dark campaigns (zero impressions)

    Failure injection:
    - fail_on_pages: page numbers (1-based) whose request raises
    - failing_campaigns: campaign ids whose mutations raise ActuationError
    - rejecting_campaigns: campaign ids whose mutations return False
    """

    # Spend ranges in dollars, (conversions range), (impressions range)
    PERFORMANCE_SCENARIOS = {
        "healthy": ((200, 5000), (5, 120), (10_000, 500_000)),
        "wasted_spend": ((150, 3000), (0, 0), (5_000, 200_000)),
        "high_cpa": ((500, 8000), (1, 4), (10_000, 300_000)),
        "low_spend": ((1, 90), (0, 0), (100, 5_000)),
        "dark": ((0, 0), (0, 0), (0, 0)),
    }

    def __init__(
        self,
        platform: Platform = Platform.GOOGLE,
        num_campaigns: int = 10,
        seed: Optional[int] = None,
        campaigns: Optional[List[Dict]] = None,
        fail_on_pages: Iterable[int] = (),
        failing_campaigns: Iterable[str] = (),
        rejecting_campaigns: Iterable[str] = (),
        latency_seconds: float = 0.0,
        sleep=time.sleep
    ):
        """
        Initialize mock API for a specific platform.

        Args:
            platform: Platform enum (GOOGLE, META, etc.)
            num_campaigns: Number of mock campaigns to generate
            seed: Random seed for reproducibility
            campaigns: Explicit campaign dictionaries (skips generation)
            fail_on_pages: Page numbers whose fetch raises ConnectionError
            failing_campaigns: Campaign ids whose mutations raise
            rejecting_campaigns: Campaign ids whose mutations return False
            latency_seconds: Simulated duration of every call
            sleep: Callable used to simulate latency
        """
        self.platform = platform
        self._random = random.Random(seed)
        self.fail_on_pages: Set[int] = set(fail_on_pages)
        self.failing_campaigns: Set[str] = set(failing_campaigns)
        self.rejecting_campaigns: Set[str] = set(rejecting_campaigns)
        self.latency_seconds = latency_seconds
        self._sleep = sleep

        if campaigns is not None:
            self.campaigns = [self._complete_campaign(c) for c in campaigns]
        else:
            self.campaigns = self._generate_mock_campaigns(num_campaigns)
        self.num_campaigns = len(self.campaigns)

        self.page_requests: List[Optional[str]] = []
        self.mutation_log: List[Dict] = []

    # ===================
    # Campaign generation
    # ===================

    def _generate_mock_campaigns(self, num_campaigns: int) -> List[Dict]:
        """
        Generate realistic campaign data with various performance patterns.

        Returns:
            List of campaign dictionaries with metrics in report format
        """
        campaigns = []

        scenario_distribution = (
            ["healthy"] * 5 +
            ["wasted_spend"] * 2 +
            ["high_cpa"] * 2 +
            ["low_spend", "dark"]
        )

        for i in range(num_campaigns):
            scenario = self._random.choice(scenario_distribution)
            spend_range, conv_range, impr_range = self.PERFORMANCE_SCENARIOS[scenario]

            spend = round(self._random.uniform(*spend_range), 2)
            conversions = self._random.randint(*conv_range)
            impressions = self._random.randint(*impr_range)

            market = self._random.choice(["EU", "NA", "APAC"])
            product = self._random.choice(["Search_Brand", "Search_Generic", "Display", "Video"])

            campaigns.append(self._complete_campaign({
                "campaign_id": f"{self.platform.value}_{i:03d}",
                "campaign_name": f"{market}_{product}_{i:03d}",
                "cost": spend,
                "conversions": conversions,
                "impressions": impressions,
                "clicks": impressions // 50,
                "bid": round(self._random.uniform(0.5, 4.0), 2),
                "scenario": scenario,
            }))

        return campaigns

    @staticmethod
    def _to_micros(amount) -> int:
        return int((Decimal(str(amount)) * 1_000_000).to_integral_value(rounding=ROUND_HALF_UP))

    def _complete_campaign(self, data: Dict) -> Dict:
        """Fill defaults and convert dollar figures to report micros."""
        cost_micros = data.get("cost_micros")
        if cost_micros is None:
            cost_micros = self._to_micros(data.get("cost", 0))

        conversions = data.get("conversions", 0)
        cost_per_conversion = data.get("cost_per_conversion_micros")
        if cost_per_conversion is None and "cost_per_conversion" in data:
            cost_per_conversion = self._to_micros(data["cost_per_conversion"])
        if cost_per_conversion is None and conversions:
            cost_per_conversion = int(Decimal(cost_micros) / Decimal(str(conversions)))

        bid_micros = data.get("bid_micros")
        if bid_micros is None:
            bid_micros = self._to_micros(data.get("bid", 1.0))

        return {
            "campaign_id": data["campaign_id"],
            "campaign_name": data.get("campaign_name", data["campaign_id"]),
            "status": data.get("status", "ENABLED"),
            "bid_micros": bid_micros,
            "scenario": data.get("scenario", "custom"),
            "metrics": {
                "cost_micros": cost_micros,
                "conversions": conversions,
                "impressions": data.get("impressions", 1000),
                "clicks": data.get("clicks", 0),
                "cost_per_conversion": cost_per_conversion,
            },
        }

    def _find(self, campaign_id: str) -> Optional[Dict]:
        return next(
            (c for c in self.campaigns if c["campaign_id"] == campaign_id),
            None
        )

    def _simulate_latency(self):
        if self.latency_seconds:
            self._sleep(self.latency_seconds)

    # ===================
    # Report endpoint
    # ===================

    def fetch_page(self, request: ReportRequest, page_token: Optional[str] = None) -> ReportPage:
        """
        Return one page of the campaign performance report.

        Rows are filtered by status and ordered by campaign id. The token
        encodes the offset of the next row.

        Raises:
            ConnectionError: If the page number is configured to fail
            ValueError: If the token was not issued by this API
        """
        self.page_requests.append(page_token)
        self._simulate_latency()

        page_number = len(self.page_requests)
        if page_number in self.fail_on_pages:
            raise ConnectionError(
                f"[MOCK] {self.platform.value.upper()} report service unavailable"
            )

        offset = 0
        if page_token:
            if not page_token.startswith("offset:"):
                raise ValueError(f"Unknown page token: {page_token}")
            offset = int(page_token.split(":", 1)[1])

        matching = sorted(
            (c for c in self.campaigns if c["status"] in request.entity_filter),
            key=lambda c: campaign_sort_key(c["campaign_id"])
        )
        window = matching[offset:offset + request.page_size]
        next_offset = offset + len(window)

        rows = [
            {
                "campaign_id": c["campaign_id"],
                "campaign_name": c["campaign_name"],
                "status": c["status"],
                "metrics": dict(c["metrics"]),
            }
            for c in window
        ]

        return ReportPage(
            rows=rows,
            next_page_token=f"offset:{next_offset}" if next_offset < len(matching) else None
        )

    # ===================
    # Mutation endpoints
    # ===================

    def _check_mutation(self, campaign_id: str, action: str) -> Optional[Dict]:
        self._simulate_latency()
        if campaign_id in self.failing_campaigns:
            self.mutation_log.append({"campaign_id": campaign_id, "action": action, "success": False})
            raise ActuationError(
                f"[MOCK] {action} rejected by {self.platform.value.upper()}: RESOURCE_EXHAUSTED",
                campaign_id=campaign_id
            )
        campaign = self._find(campaign_id)
        if campaign is None or campaign_id in self.rejecting_campaigns:
            self.mutation_log.append({"campaign_id": campaign_id, "action": action, "success": False})
            return None
        return campaign

    def pause_campaign(self, campaign_id: str) -> bool:
        """
        Pause a campaign (mock action). Pausing a paused campaign is a no-op success.

        Returns:
            True if paused, False if not found or rejected

        Raises:
            ActuationError: If the campaign is configured to fail
        """
        campaign = self._check_mutation(campaign_id, "pause_campaign")
        if campaign is None:
            return False

        campaign["status"] = "PAUSED"
        self.mutation_log.append({"campaign_id": campaign_id, "action": "pause_campaign", "success": True})
        return True

    def reduce_campaign_bid(self, campaign_id: str, fraction: Decimal) -> bool:
        """
        Lower a campaign's bid by a fraction of its current value (mock action).

        Returns:
            True if the bid was lowered, False if not found or rejected

        Raises:
            ActuationError: If the campaign is configured to fail
        """
        fraction = Decimal(str(fraction))
        if not (0 < fraction < 1):
            raise ActuationError(
                f"[MOCK] Invalid bid reduction {fraction} for {campaign_id}",
                campaign_id=campaign_id
            )

        campaign = self._check_mutation(campaign_id, "reduce_campaign_bid")
        if campaign is None:
            return False

        new_bid = Decimal(campaign["bid_micros"]) * (1 - fraction)
        campaign["bid_micros"] = int(new_bid.to_integral_value(rounding=ROUND_HALF_UP))
        self.mutation_log.append({
            "campaign_id": campaign_id,
            "action": "reduce_campaign_bid",
            "success": True,
            "fraction": str(fraction),
        })
        return True

    def resume_campaign(self, campaign_id: str) -> bool:
        """Resume a paused campaign (mock action)."""
        campaign = self._find(campaign_id)
        if campaign is None:
            return False
        campaign["status"] = "ENABLED"
        return True

    # ===================
    # Inspection helpers
    # ===================

    def get_campaign_status(self, campaign_id: str) -> Optional[str]:
        """Current status ("ENABLED" or "PAUSED") or None if not found."""
        campaign = self._find(campaign_id)
        return campaign["status"] if campaign else None

    def get_campaign_bid_micros(self, campaign_id: str) -> Optional[int]:
        campaign = self._find(campaign_id)
        return campaign["bid_micros"] if campaign else None

    def list_campaign_ids(self) -> List[str]:
        return [c["campaign_id"] for c in self.campaigns]

    def get_summary_stats(self) -> Dict[str, any]:
        """
        Get summary statistics for all campaigns.

        Returns:
            Dictionary with aggregated stats
        """
        total_cost_micros = sum(c["metrics"]["cost_micros"] for c in self.campaigns)

        scenario_counts = {}
        for c in self.campaigns:
            scenario_counts[c["scenario"]] = scenario_counts.get(c["scenario"], 0) + 1

        return {
            "platform": self.platform.value,
            "total_campaigns": self.num_campaigns,
            "enabled_campaigns": sum(1 for c in self.campaigns if c["status"] == "ENABLED"),
            "paused_campaigns": sum(1 for c in self.campaigns if c["status"] == "PAUSED"),
            "total_cost_micros": total_cost_micros,
            "scenario_distribution": scenario_counts,
        }
