"""
OptimizerBrain: LangGraph-based optimization pipeline.

This module wires the pipeline stages into a state machine:
fetch pages and classify records, actuate the resulting actions in
batches, account for every action, then hand the summary to the audit
trail. A failed page fetch or a halting input error skips actuation.
"""

import time
from datetime import date, timedelta
from typing import Callable, List, Literal, Optional, Tuple, TypedDict

from langgraph.graph import StateGraph, END

from campaign_optimizer.agents.batch_actuator import BatchActuator
from campaign_optimizer.agents.budget_guard import BudgetGuard
from campaign_optimizer.agents.run_accountant import RunAccountant
from campaign_optimizer.analyzers.performance_analyzer import PerformanceAnalyzer
from campaign_optimizer.api.report_source import PageFetcher, ReportRequest
from campaign_optimizer.config import OptimizerConfig
from campaign_optimizer.errors import ClassificationInputError, FetchError
from campaign_optimizer.models.actions import (
    ActionOutcome,
    ActionResult,
    Classification,
    RunSummary,
    SkipReason,
    StopReason,
)
from campaign_optimizer.models.metrics import MetricRecord
from campaign_optimizer.utils.audit_logger import AuditLogger


class OptimizerState(TypedDict):
    """
    State passed between nodes in the LangGraph workflow.

    Only actionable classifications are kept; report rows are dropped
    as soon as their page has been classified.
    """
    guard: BudgetGuard
    entries: List[Classification]
    results: List[ActionResult]
    records_processed: int
    records_excluded: int
    no_action: int
    pages_fetched: int
    input_errors: List[Tuple[str, str]]
    stop_reason: Optional[StopReason]
    fetch_error: Optional[str]
    summary: Optional[RunSummary]


class _HaltRun(Exception):
    """Internal signal: an invalid record ends the run."""


class OptimizerBrain:
    """
    LangGraph-based campaign optimization pipeline.

    This agent orchestrates one complete run:
    1. Page through the performance report within the execution budget
    2. Normalize micro-unit money and classify every campaign
    3. Pause or down-bid the flagged campaigns in batches
    4. Account for every action and log the run summary
    """

    def __init__(
        self,
        report_source,
        platform_api,
        config: Optional[OptimizerConfig] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        today: Optional[date] = None
    ):
        """
        Initialize OptimizerBrain.

        Args:
            report_source: Object with fetch_page(request, page_token)
            platform_api: Object with pause_campaign and reduce_campaign_bid
            config: Optimizer configuration (defaults if omitted)
            audit_logger: Optional AuditLogger instance
            clock: Monotonic clock for the execution budget
            sleep: Callable used for the cooldown between batches
            today: Reference date for the report window (default: today)
        """
        self.config = config or OptimizerConfig()
        self.config.validate()
        self.audit_logger = audit_logger
        self.clock = clock

        self.analyzer = PerformanceAnalyzer(self.config.thresholds())
        self.fetcher = PageFetcher(
            report_source,
            self.build_request(self.config, today or date.today()),
            self.config.schema(),
        )
        self.actuator = BatchActuator(
            platform_api,
            batch_size=self.config.batch_size,
            cooldown_seconds=self.config.cooldown_seconds,
            sleep=sleep,
            dry_run=self.config.dry_run,
            max_actions=self.config.max_actions,
            audit_logger=audit_logger,
        )
        self.accountant = RunAccountant()

        self.graph = self._build_graph()

    @staticmethod
    def build_request(config: OptimizerConfig, today: date) -> ReportRequest:
        """Report window of `lookback_days` complete days ending yesterday."""
        end_date = today - timedelta(days=1)
        return ReportRequest(
            start_date=end_date - timedelta(days=config.lookback_days - 1),
            end_date=end_date,
            entity_filter=config.entity_statuses,
            page_size=config.page_size,
        )

    def _build_graph(self):
        """
        Construct the LangGraph state machine.

        Returns:
            Compiled StateGraph ready for execution
        """
        workflow = StateGraph(OptimizerState)

        workflow.add_node("fetch_and_classify", self.fetch_and_classify)
        workflow.add_node("actuate", self.actuate)
        workflow.add_node("summarize", self.summarize)
        workflow.add_node("audit", self.audit)

        workflow.set_entry_point("fetch_and_classify")

        workflow.add_conditional_edges(
            "fetch_and_classify",
            self.route_after_fetch,
            {
                "actuate": "actuate",
                "abort": "summarize",
                "nothing_to_do": "summarize",
            }
        )
        workflow.add_edge("actuate", "summarize")
        workflow.add_edge("summarize", "audit")
        workflow.add_edge("audit", END)

        return workflow.compile()

    # ===================
    # Node Implementations
    # ===================

    def fetch_and_classify(self, state: OptimizerState) -> dict:
        """
        Walk the report and classify every row.

        The budget is checked before each page request. A FetchError ends
        the walk and marks the run as failed; running out of budget ends it
        normally.
        """
        guard = state["guard"]
        update = {
            "entries": list(state["entries"]),
            "records_processed": state["records_processed"],
            "records_excluded": state["records_excluded"],
            "no_action": state["no_action"],
            "pages_fetched": state["pages_fetched"],
            "input_errors": list(state["input_errors"]),
            "stop_reason": state["stop_reason"],
            "fetch_error": state["fetch_error"],
        }

        exhausted = False
        try:
            for page in self.fetcher.iter_pages(should_stop=guard.expired):
                update["pages_fetched"] += 1

                for campaign_id, detail in page.errors:
                    update["records_processed"] += 1
                    self._reject(update, campaign_id, detail)

                for record in page.records:
                    update["records_processed"] += 1
                    self._process_record(update, record)

                exhausted = page.is_last
        except FetchError as e:
            update["stop_reason"] = StopReason.FETCH_FAILED
            update["fetch_error"] = str(e)
            if self.audit_logger:
                self.audit_logger.log_error(
                    error_type="fetch_error",
                    error_message=str(e),
                    context={"page_token": e.page_token, "pages_fetched": update["pages_fetched"]}
                )
            return update
        except _HaltRun:
            update["stop_reason"] = StopReason.INVALID_INPUT
            return update

        if not exhausted:
            update["stop_reason"] = StopReason.BUDGET_EXCEEDED

        return update

    def _process_record(self, update: dict, record: MetricRecord):
        """Normalize, filter and classify a single record."""
        try:
            normalized = self.fetcher.schema.normalize(record)
            if not self.analyzer.has_performance_signal(normalized):
                update["records_excluded"] += 1
                return
            classification = self.analyzer.classify(normalized)
        except ClassificationInputError as e:
            self._reject(update, record.campaign_id, str(e))
            return

        if not classification.requires_action:
            update["no_action"] += 1
            return

        update["entries"].append(classification)
        if self.audit_logger:
            self.audit_logger.log_decision(
                classification,
                recommendation=self.analyzer.generate_recommendation(classification)
            )

    def _reject(self, update: dict, campaign_id: str, detail: str):
        """Record a malformed record and halt the run if configured to."""
        update["input_errors"].append((campaign_id, detail))
        if self.audit_logger:
            self.audit_logger.log_error(
                error_type="classification_input_error",
                error_message=detail,
                campaign_id=campaign_id
            )
        if self.config.halt_on_invalid_record:
            raise _HaltRun()

    def actuate(self, state: OptimizerState) -> dict:
        """Apply all actionable classifications in batches."""
        results = self.actuator.run(state["entries"], state["guard"])

        stop_reason = state["stop_reason"]
        budget_skips = any(
            r.outcome == ActionOutcome.SKIPPED and r.skip_reason == SkipReason.BUDGET_EXCEEDED
            for r in results
        )
        if budget_skips:
            stop_reason = StopReason.BUDGET_EXCEEDED

        return {"results": results, "stop_reason": stop_reason}

    def summarize(self, state: OptimizerState) -> dict:
        """Fold the run into a RunSummary."""
        summary = self.accountant.summarize(
            entries=state["entries"],
            results=state["results"],
            stop_reason=state["stop_reason"] or StopReason.COMPLETED,
            elapsed_seconds=state["guard"].elapsed(),
            records_processed=state["records_processed"],
            records_excluded=state["records_excluded"],
            no_action=state["no_action"],
            pages_fetched=state["pages_fetched"],
            input_errors=state["input_errors"],
            fetch_error=state["fetch_error"],
        )
        return {"summary": summary}

    def audit(self, state: OptimizerState) -> dict:
        """Log the run summary to the audit trail."""
        if self.audit_logger:
            self.audit_logger.log_run_summary(
                state["summary"],
                context={
                    "platform": self.config.platform.value,
                    "dry_run": self.config.dry_run,
                    "start_date": self.fetcher.request.start_date.isoformat(),
                    "end_date": self.fetcher.request.end_date.isoformat(),
                }
            )
        return {"summary": state["summary"]}

    # ================
    # Routing Functions
    # ================

    def route_after_fetch(self, state: OptimizerState) -> Literal["actuate", "abort", "nothing_to_do"]:
        """
        Skip actuation when the report could not be read completely and
        correctly, or when nothing needs doing.
        """
        if state["stop_reason"] in (StopReason.FETCH_FAILED, StopReason.INVALID_INPUT):
            return "abort"
        if not state["entries"]:
            return "nothing_to_do"
        return "actuate"

    # ===================
    # Public Interface
    # ===================

    def new_guard(self) -> BudgetGuard:
        return BudgetGuard.from_host_limit(
            self.config.host_limit_seconds,
            safety_margin=self.config.safety_margin,
            clock=self.clock,
        )

    def run(self, guard: Optional[BudgetGuard] = None) -> RunSummary:
        """
        Execute one optimization run.

        Args:
            guard: Budget guard to run under (a fresh one from config if omitted)

        Returns:
            RunSummary with final accounting
        """
        initial_state = OptimizerState(
            guard=guard or self.new_guard(),
            entries=[],
            results=[],
            records_processed=0,
            records_excluded=0,
            no_action=0,
            pages_fetched=0,
            input_errors=[],
            stop_reason=None,
            fetch_error=None,
            summary=None,
        )

        final_state = self.graph.invoke(initial_state)

        return final_state["summary"]
