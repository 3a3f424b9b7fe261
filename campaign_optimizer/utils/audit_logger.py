"""
Audit logging utility.

Logs optimizer decisions, mutations and run summaries as JSON lines for
compliance and after-the-fact analysis.
"""

import json
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from pathlib import Path


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLogger:
    """
    Log optimizer decisions and actions for audit trail.

    Maintains a complete record of:
    - Every actionable classification and its reasoning
    - Every mutation outcome (applied, failed, skipped)
    - Records rejected for bad input
    - The final run summary
    """

    def __init__(
        self,
        log_file: str = "audit_log.jsonl",
        log_dir: Optional[str] = None
    ):
        """
        Initialize audit logger.

        Args:
            log_file: Name of log file (JSONL format)
            log_dir: Directory for log files (default: current directory)
        """
        if log_dir:
            self.log_dir = Path(log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_path = self.log_dir / log_file
        else:
            self.log_path = Path(log_file)

    def log_event(self, event: Dict[str, Any]):
        """
        Log a generic event.

        Args:
            event: Event dictionary with arbitrary fields
        """
        if "timestamp" not in event:
            event["timestamp"] = _utc_now()

        with open(self.log_path, "a") as f:
            f.write(json.dumps(event, default=str) + "\n")

    def log_decision(self, classification, recommendation: str = ""):
        """
        Log a classification that calls for action.

        Args:
            classification: Classification object
            recommendation: Human-readable recommendation
        """
        event = {
            "event_type": "decision",
            **classification.to_dict(),
            "recommendation": recommendation,
        }
        self.log_event(event)

    def log_action(self, result):
        """
        Log the outcome of a mutation.

        Args:
            result: ActionResult object
        """
        event = {
            "event_type": "action",
            **result.to_dict(),
        }
        self.log_event(event)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        campaign_id: Optional[str] = None,
        context: Optional[Dict] = None
    ):
        """
        Log an error.

        Args:
            error_type: Type/category of error
            error_message: Error description
            campaign_id: Optional campaign identifier
            context: Optional context information
        """
        event = {
            "event_type": "error",
            "error_type": error_type,
            "error_message": error_message,
            "campaign_id": campaign_id,
            "context": context or {},
        }
        self.log_event(event)

    def log_run_summary(self, summary, context: Optional[Dict] = None):
        """
        Log the final summary of a run.

        Args:
            summary: RunSummary object
            context: Optional run context (platform, dry run, ...)
        """
        event = {
            "event_type": "run_summary",
            **summary.to_dict(),
            "context": context or {},
        }
        self.log_event(event)

    def get_events(
        self,
        event_type: Optional[str] = None,
        campaign_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict]:
        """
        Retrieve events from log file.

        Args:
            event_type: Filter by event type
            campaign_id: Filter by campaign ID
            limit: Maximum number of events to return

        Returns:
            List of event dictionaries
        """
        if not self.log_path.exists():
            return []

        events = []
        with open(self.log_path, "r") as f:
            for line in f:
                try:
                    event = json.loads(line.strip())
                except json.JSONDecodeError:
                    continue

                if event_type and event.get("event_type") != event_type:
                    continue
                if campaign_id and event.get("campaign_id") != campaign_id:
                    continue

                events.append(event)

                if limit and len(events) >= limit:
                    break

        return events

    def get_summary_stats(self) -> Dict[str, Any]:
        """
        Get summary statistics from audit log.

        Returns:
            Dictionary with aggregated statistics
        """
        events = self.get_events()

        event_types = {}
        decisions_by_action = {}
        actions_by_outcome = {}

        for event in events:
            event_type = event.get("event_type", "unknown")
            event_types[event_type] = event_types.get(event_type, 0) + 1

            if event_type == "decision":
                action = event.get("action", "unknown")
                decisions_by_action[action] = decisions_by_action.get(action, 0) + 1

            if event_type == "action":
                outcome = event.get("outcome", "unknown")
                actions_by_outcome[outcome] = actions_by_outcome.get(outcome, 0) + 1

        return {
            "total_events": len(events),
            "event_types": event_types,
            "decisions_by_action": decisions_by_action,
            "actions_by_outcome": actions_by_outcome,
            "log_file": str(self.log_path),
            "log_size_bytes": self.log_path.stat().st_size if self.log_path.exists() else 0
        }

    def clear_log(self):
        """
        Clear the audit log file.

        WARNING: This will delete all audit records.
        """
        if self.log_path.exists():
            self.log_path.unlink()
