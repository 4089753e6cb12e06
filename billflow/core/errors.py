class BillFlowError(Exception):
    """Base error carrying the HTTP status it maps to."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationFailure(BillFlowError, ValueError):
    status_code = 400

class InvalidMonthKey(ValidationFailure):
    def __init__(self, month_key: str):
        super().__init__("Invalid month key (expected YYYY-MM)")
        self.month_key = month_key

class EmailConfigError(ValidationFailure):
    """Missing provider, sender or recipient, or an unknown provider."""

class DispatchError(BillFlowError):
    """The email transport rejected the message or could not be reached."""
    status_code = 500
