"""Application exceptions for the rating form and recap flows.

Every failure a flow can surface to the user is one of these. None of them
is fatal: routes catch them and degrade to an error display.
"""


class PeerRateError(Exception):
    """Base exception for all PeerRate errors."""

    pass


class ValidationError(PeerRateError):
    """Raised when submitted form values fail validation.

    Recoverable by the user correcting the named field.
    """

    def __init__(self, field: str, message: str):
        """Initialize the exception.

        Args:
            field: Name of the first offending form field.
            message: Human readable reason shown next to the field.
        """
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class FetchError(PeerRateError):
    """Raised when an option list or the recap data cannot be retrieved."""

    def __init__(self, resource: str, reason: str = ""):
        self.resource = resource
        self.reason = reason
        super().__init__(f"Could not load {resource}" + (f": {reason}" if reason else ""))

    @property
    def public_message(self) -> str:
        """Generic text safe to show to users; the reason is only logged."""
        return f"Could not load {self.resource}."


class WriteError(PeerRateError):
    """Raised when a rating cannot be persisted."""

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__("Failed to submit rating" + (f": {reason}" if reason else ""))

    @property
    def public_message(self) -> str:
        return "Failed to submit rating"
