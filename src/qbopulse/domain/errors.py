"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or data does not exist."""


class ReportFetchError(DomainError):
    """Upstream report or query request failed."""


class PersistenceError(DomainError):
    """The persistence sink rejected a write."""


def report_fetch_failed(endpoint: str, status_code: int, body: str) -> str:
    """Return message for a failed QuickBooks request."""
    return f"QuickBooks API error {status_code} on {endpoint}: {body}"


def month_skipped(month_key: str, stage: str, reason: str) -> str:
    """Return message recorded when a month's report could not be fetched."""
    return f"{month_key} {stage}: {reason}"


def no_performance_data(current_label: str, compare_label: str) -> str:
    """Return message when neither comparison period has data."""
    return f"No data available for {current_label} or {compare_label}"


def no_sync_status(company_id: str) -> str:
    """Return message for a company with no sync runs."""
    return f"No sync status found for company {company_id}"


def empty_history() -> str:
    """Return message when projections are requested without history."""
    return "At least one month of history is required for projections"
