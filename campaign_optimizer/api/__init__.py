"""Report source and platform API clients."""

from campaign_optimizer.api.report_source import (
    ReportRequest,
    ReportPage,
    MetricPage,
    PageFetcher,
)
from campaign_optimizer.api.mock_platform_api import MockPlatformAPI

__all__ = [
    "ReportRequest",
    "ReportPage",
    "MetricPage",
    "PageFetcher",
    "MockPlatformAPI",
]
