"""
Exception taxonomy for the optimizer pipeline.

Running out of execution budget is not an error and has no exception here;
it is reported through StopReason.BUDGET_EXCEEDED on the run summary.
"""


class OptimizerError(Exception):
    """Base class for all optimizer errors."""


class FetchError(OptimizerError):
    """A report page could not be retrieved. Fatal to the run."""

    def __init__(self, message: str, page_token=None):
        super().__init__(message)
        self.page_token = page_token


class ActuationError(OptimizerError):
    """A single pause or bid mutation failed on the platform."""

    def __init__(self, message: str, campaign_id=None):
        super().__init__(message)
        self.campaign_id = campaign_id


class ClassificationInputError(OptimizerError, ValueError):
    """A record is missing a metric or carries a malformed value."""

    def __init__(self, message: str, campaign_id=None):
        super().__init__(message)
        self.campaign_id = campaign_id


class AccountingError(OptimizerError):
    """An action result could not be matched to exactly one classification."""
