"""
Unit tests for PageFetcher.

Tests pagination, error wrapping and detection of misbehaving sources.
"""

import pytest
from datetime import date

from campaign_optimizer.api.mock_platform_api import MockPlatformAPI
from campaign_optimizer.api.report_source import PageFetcher, ReportPage, ReportRequest
from campaign_optimizer.errors import FetchError


def make_request(page_size=2):
    return ReportRequest(date(2026, 9, 1), date(2026, 9, 30), page_size=page_size)


def row(campaign_id):
    return {
        "campaign_id": campaign_id,
        "campaign_name": campaign_id,
        "metrics": {"cost_micros": 0, "conversions": 0, "impressions": 1},
    }


class ScriptedSource:
    """Report source that replays a fixed list of pages."""

    def __init__(self, pages):
        self.pages = list(pages)
        self.tokens = []

    def fetch_page(self, request, page_token=None):
        self.tokens.append(page_token)
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


class TestReportRequest:
    """Test ReportRequest validation."""

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValueError):
            make_request(page_size=0)

    def test_dates_must_be_ordered(self):
        with pytest.raises(ValueError):
            ReportRequest(date(2026, 9, 30), date(2026, 9, 1))


class TestPagination:
    """Test walking a well-behaved source."""

    @pytest.fixture
    def api(self, make_campaign):
        return MockPlatformAPI(campaigns=[
            make_campaign(f"c{i}", cost=10, conversions=1) for i in range(5)
        ])

    def test_yields_every_record_once(self, api):
        """Test that 5 campaigns with a page size of 2 arrive as pages of 2, 2 and 1."""
        fetcher = PageFetcher(api, make_request(page_size=2))
        pages = list(fetcher.iter_pages())

        assert [len(p.records) for p in pages] == [2, 2, 1]
        assert [p.page_number for p in pages] == [1, 2, 3]
        ids = [r.campaign_id for p in pages for r in p.records]
        assert ids == ["c0", "c1", "c2", "c3", "c4"]
        assert pages[-1].is_last
        assert api.page_requests == [None, "offset:2", "offset:4"]

    def test_is_lazy(self, api):
        """Test that a page is only requested when the previous one was consumed."""
        pages = PageFetcher(api, make_request(page_size=2)).iter_pages()

        assert api.page_requests == []
        next(pages)
        assert len(api.page_requests) == 1

    def test_exact_multiple_of_page_size(self, make_campaign):
        api = MockPlatformAPI(campaigns=[make_campaign(f"c{i}", cost=1, conversions=0) for i in range(4)])
        pages = list(PageFetcher(api, make_request(page_size=2)).iter_pages())
        assert [len(p.records) for p in pages] == [2, 2]

    def test_empty_report(self):
        api = MockPlatformAPI(campaigns=[])
        pages = list(PageFetcher(api, make_request()).iter_pages())

        assert len(pages) == 1
        assert pages[0].records == []
        assert pages[0].is_last

    def test_should_stop_before_first_page(self, api):
        pages = list(PageFetcher(api, make_request()).iter_pages(should_stop=lambda: True))

        assert pages == []
        assert api.page_requests == []

    def test_should_stop_between_pages(self, api):
        """Test that the stop check runs before every page request."""
        calls = []

        def stop_after_first():
            calls.append(1)
            return len(calls) > 1

        pages = list(PageFetcher(api, make_request()).iter_pages(should_stop=stop_after_first))

        assert len(pages) == 1
        assert len(api.page_requests) == 1

    def test_each_walk_starts_from_first_page(self, api):
        fetcher = PageFetcher(api, make_request(page_size=5))
        list(fetcher.iter_pages())
        list(fetcher.iter_pages())
        assert api.page_requests == [None, None]

    def test_unparseable_rows_are_reported(self):
        source = ScriptedSource([ReportPage(rows=[row("c1"), {"metrics": {}}])])
        page = PageFetcher(source, make_request()).fetch()

        assert [r.campaign_id for r in page.records] == ["c1"]
        assert page.errors == [("<unknown>", "Report row has no campaign_id")]
        assert page.row_count == 2


class TestFetchFailures:
    """Test conversion of source failures into FetchError."""

    def test_transport_error_is_wrapped(self, make_campaign):
        api = MockPlatformAPI(campaigns=[make_campaign(f"c{i}", cost=1, conversions=0) for i in range(5)],
                              fail_on_pages=[2])
        pages = PageFetcher(api, make_request()).iter_pages()

        next(pages)
        with pytest.raises(FetchError) as exc_info:
            next(pages)
        assert "Page 2" in str(exc_info.value)
        assert exc_info.value.page_token == "offset:2"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_fetch_error_passes_through(self):
        original = FetchError("quota", page_token="t")
        source = ScriptedSource([original])

        with pytest.raises(FetchError) as exc_info:
            PageFetcher(source, make_request()).fetch()
        assert exc_info.value is original

    def test_missing_page(self):
        source = ScriptedSource([None])
        with pytest.raises(FetchError):
            PageFetcher(source, make_request()).fetch()

    def test_oversized_page(self):
        """Test that a page larger than the page size is refused."""
        source = ScriptedSource([ReportPage(rows=[row("c1"), row("c2"), row("c3")])])

        with pytest.raises(FetchError, match="more than the page size"):
            PageFetcher(source, make_request(page_size=2)).fetch()

    def test_repeated_token(self):
        """Test that a source looping on one continuation token is stopped."""
        source = ScriptedSource([
            ReportPage(rows=[row("c1")], next_page_token="t1"),
            ReportPage(rows=[row("c2")], next_page_token="t1"),
            ReportPage(rows=[row("c3")], next_page_token=None),
        ])
        pages = PageFetcher(source, make_request()).iter_pages()

        next(pages)
        next(pages)
        with pytest.raises(FetchError, match="repeated"):
            next(pages)
        assert source.tokens == [None, "t1"]

    def test_duplicate_campaign_across_pages(self):
        """Test that a campaign seen twice is refused before it can be classified twice."""
        source = ScriptedSource([
            ReportPage(rows=[row("c1"), row("c2")], next_page_token="t1"),
            ReportPage(rows=[row("c2"), row("c3")], next_page_token=None),
        ])
        pages = PageFetcher(source, make_request()).iter_pages()

        next(pages)
        with pytest.raises(FetchError, match="c2 arrived out of order after c2"):
            next(pages)

    def test_out_of_order_within_page(self):
        source = ScriptedSource([ReportPage(rows=[row("c1"), row("c3"), row("c2")])])
        pages = PageFetcher(source, make_request(page_size=3)).iter_pages()

        with pytest.raises(FetchError, match="c2 arrived out of order after c3"):
            next(pages)

    def test_numeric_ids_sort_as_numbers(self):
        source = ScriptedSource([
            ReportPage(rows=[row("8"), row("9")], next_page_token="t1"),
            ReportPage(rows=[row("10"), row("11")], next_page_token=None),
        ])
        pages = list(PageFetcher(source, make_request()).iter_pages())

        assert [r.campaign_id for p in pages for r in p.records] == ["8", "9", "10", "11"]


class TestLongWalks:
    """Test that walk state grows with pages, never with rows."""

    def test_thousand_campaigns(self, make_campaign):
        api = MockPlatformAPI(campaigns=[
            make_campaign(f"c{i:04d}", cost=1, conversions=0) for i in range(1000)
        ])
        pages = PageFetcher(api, make_request(page_size=10)).iter_pages()

        for _ in range(99):
            next(pages)

        held = [len(v) for v in pages.gi_frame.f_locals.values() if isinstance(v, (set, list, dict))]
        assert max(held) < 100

        rest = list(pages)
        assert len(rest) == 1
        assert rest[0].records[-1].campaign_id == "c0999"

    def test_mock_orders_numeric_ids_numerically(self, make_campaign):
        api = MockPlatformAPI(campaigns=[
            make_campaign(str(i), cost=1, conversions=0) for i in (10, 2, 1)
        ])
        pages = list(PageFetcher(api, make_request(page_size=2)).iter_pages())

        assert [r.campaign_id for p in pages for r in p.records] == ["1", "2", "10"]
