# fitcoach/errors.py
"""
Error taxonomy for the adherence engine.

Every error carries a stable, user-facing message and the HTTP status the
invocation boundary maps it to.
"""


class FitcoachError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"success": False, "message": self.message}


class ValidationError(FitcoachError):
    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message=None, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])

    def to_dict(self):
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class Unauthenticated(FitcoachError):
    status_code = 401
    default_message = "Not authenticated"


class StorageError(FitcoachError):
    status_code = 500
    default_message = "Storage temporarily unavailable, nothing was saved"


class PolicyConflict(FitcoachError):
    """Lost an optimistic-concurrency race on the adjustment marker."""
    status_code = 409
    default_message = "Concurrent adjustment in progress"


class QuotaExceeded(FitcoachError):
    status_code = 402
    default_message = "Plan regeneration limit reached for this week"
