"""
Paginated report fetching.

The reporting source is a black box that answers one page at a time and
hands back an opaque continuation token. PageFetcher turns that into a
lazy, finite sequence of MetricPage objects so that only one page of rows
is held in memory while it is being classified.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from campaign_optimizer.errors import ClassificationInputError, FetchError
from campaign_optimizer.models.metrics import MetricRecord, MetricSchema


@dataclass(frozen=True)
class ReportRequest:
    """
    Query sent with every page request.

    `order_by` must be a stable, unique key (the campaign id) so that no
    row moves across page boundaries between requests.
    """
    start_date: date
    end_date: date
    entity_filter: Tuple[str, ...] = ("ENABLED",)
    order_by: str = "campaign.id"
    page_size: int = 500

    def __post_init__(self):
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        object.__setattr__(self, "entity_filter", tuple(self.entity_filter))


def campaign_sort_key(campaign_id: str) -> Tuple[int, int, str]:
    """
    Position of a campaign in a report ordered by campaign id.

    Platform ids are numeric and sort as numbers ("9" before "10");
    anything else sorts as text after them.
    """
    if campaign_id.isdigit():
        return (0, int(campaign_id), "")
    return (1, 0, campaign_id)


@dataclass
class ReportPage:
    """Raw page as returned by a report source."""
    rows: List[Dict]
    next_page_token: Optional[str] = None


@dataclass
class MetricPage:
    """A page of parsed MetricRecords plus rows that could not be parsed."""
    records: List[MetricRecord]
    next_page_token: Optional[str] = None
    errors: List[Tuple[str, str]] = field(default_factory=list)
    page_number: int = 1

    @property
    def is_last(self) -> bool:
        return not self.next_page_token

    @property
    def row_count(self) -> int:
        return len(self.records) + len(self.errors)


class PageFetcher:
    """
    Retrieve report pages one at a time.

    Responsibilities:
    - Request exactly one page per call
    - Parse rows into MetricRecords through the MetricSchema
    - Convert any transport failure into a FetchError
    - Detect sources that misbehave (oversized pages, token loops)
    """

    def __init__(self, source, request: ReportRequest, schema: Optional[MetricSchema] = None):
        """
        Initialize fetcher.

        Args:
            source: Object with fetch_page(request, page_token) -> ReportPage
            request: Report query, including the page size bound
            schema: Field layout used to build MetricRecords
        """
        self.source = source
        self.request = request
        self.schema = schema or MetricSchema()

    def fetch(self, page_token: Optional[str] = None, page_number: int = 1) -> MetricPage:
        """
        Fetch a single page.

        Args:
            page_token: Continuation token from the previous page, None for the first
            page_number: Position of the page in the run, for diagnostics

        Returns:
            MetricPage with parsed records and the next continuation token

        Raises:
            FetchError: If the source fails or returns an invalid page
        """
        try:
            raw = self.source.fetch_page(self.request, page_token)
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(
                f"Page {page_number} request failed: {e}", page_token=page_token
            ) from e

        if raw is None:
            raise FetchError(f"Page {page_number} came back empty-handed", page_token=page_token)

        if len(raw.rows) > self.request.page_size:
            raise FetchError(
                f"Page {page_number} returned {len(raw.rows)} rows, "
                f"more than the page size of {self.request.page_size}",
                page_token=page_token
            )

        records = []
        errors = []
        for row in raw.rows:
            try:
                records.append(self.schema.build_record(row))
            except ClassificationInputError as e:
                errors.append((e.campaign_id or "<unknown>", str(e)))

        return MetricPage(
            records=records,
            next_page_token=raw.next_page_token or None,
            errors=errors,
            page_number=page_number,
        )

    def iter_pages(self, should_stop: Optional[Callable[[], bool]] = None) -> Iterator[MetricPage]:
        """
        Lazily walk every page from the first one.

        `should_stop` is consulted before each request; when it returns True
        the sequence ends without fetching. Each call starts a fresh walk.

        Records must arrive in strictly increasing campaign_sort_key order.
        Only the last key is kept, so a repeated or shuffled campaign is
        caught without remembering every id of the walk.

        Raises:
            FetchError: On any page failure, when the source hands back a
                continuation token it has already issued, or when a campaign
                does not sort after the one delivered before it
        """
        token = None
        seen_tokens = set()
        last_id = None
        last_key = None
        page_number = 0

        while True:
            if should_stop is not None and should_stop():
                return

            page_number += 1
            page = self.fetch(token, page_number=page_number)

            for record in page.records:
                key = campaign_sort_key(record.campaign_id)
                if last_key is not None and key <= last_key:
                    raise FetchError(
                        f"Campaign {record.campaign_id} arrived out of order after {last_id}; "
                        f"ordering by '{self.request.order_by}' is not stable",
                        page_token=token
                    )
                last_id, last_key = record.campaign_id, key

            yield page

            if page.is_last:
                return

            if page.next_page_token in seen_tokens:
                raise FetchError(
                    f"Source repeated continuation token after page {page_number}",
                    page_token=page.next_page_token
                )
            seen_tokens.add(page.next_page_token)
            token = page.next_page_token
