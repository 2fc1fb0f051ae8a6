"""
Error taxonomy for report intake and operator workflows.

Every error carries the HTTP status and the short label the API returns,
so routes raise them directly and app.main maps them in one handler.
"""

from typing import Dict, List, Optional


class ReportError(Exception):
    """Base class for all domain errors surfaced to API callers."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {"error": self.error, "message": self.message}


class ValidationError(ReportError):
    """Malformed or out-of-range input. Lists every failing field."""

    status_code = 400
    error = "ValidationError"

    def __init__(self, errors: List[Dict[str, str]]):
        fields = ", ".join(e["field"] for e in errors)
        super().__init__(f"Invalid report fields: {fields}")
        self.errors = errors

    def to_dict(self) -> Dict:
        return {"error": self.error, "message": self.message, "errors": self.errors}


class RateLimited(ReportError):
    status_code = 429
    error = "Rate Limited"

    def __init__(self, limit: int, retry_after_seconds: int):
        super().__init__(
            f"Too many reports submitted. Maximum {limit} reports per hour, please try again later."
        )
        self.limit = limit
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["retryAfterSeconds"] = self.retry_after_seconds
        return data


class DuplicateError(ReportError):
    """A recent report already covers this location."""

    status_code = 409
    error = "Duplicate Report"

    def __init__(self, duplicate_of: str):
        super().__init__("A similar report was submitted recently in this area")
        self.duplicate_of = duplicate_of

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["duplicateOf"] = self.duplicate_of
        return data


class NotFoundError(ReportError):
    status_code = 404
    error = "Not Found"

    def __init__(self, report_id: str):
        super().__init__(f"Report {report_id} not found")
        self.report_id = report_id


class InvalidStatus(ReportError):
    status_code = 400
    error = "Invalid Status"

    def __init__(self, token: object):
        super().__init__(f"Invalid status value: {token!r}")
        self.token = token


class InvalidTransition(ReportError):
    status_code = 409
    error = "Invalid Transition"

    def __init__(self, from_status: str, to_status: str, allowed: Optional[List[str]] = None):
        super().__init__(
            f"Invalid status transition: {from_status} -> {to_status}. "
            f"Allowed transitions from {from_status}: {allowed or []}"
        )
        self.from_status = from_status
        self.to_status = to_status


class NotificationFailure(ReportError):
    """City notification could not be delivered. Only raised on explicit resend."""

    status_code = 502
    error = "Notification Failed"

    def __init__(self, reason: str):
        super().__init__(f"City notification failed: {reason}")
        self.reason = reason


class StoreFailure(ReportError):
    """Unexpected persistence error. The message never reaches the client."""

    status_code = 500
    error = "Internal Server Error"

    def to_dict(self) -> Dict:
        return {"error": self.error, "message": "Failed to process request"}


class AuthenticationRequired(ReportError):
    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class OperatorRequired(ReportError):
    status_code = 403
    error = "Forbidden"

    def __init__(self, message: str = "Operator access required"):
        super().__init__(message)
