"""Utility modules for notifications, audit logging and run history."""

from campaign_optimizer.utils.slack_notifier import SlackNotifier
from campaign_optimizer.utils.audit_logger import AuditLogger
from campaign_optimizer.utils.results_tracker import ResultsTracker

__all__ = [
    "SlackNotifier",
    "AuditLogger",
    "ResultsTracker",
]
