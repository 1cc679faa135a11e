"""
Error taxonomy shared by the stores, the chat relay and the HTTP layer.

Each error carries the HTTP status the API layer answers with; the message is
what end users see in the ``{"error": ...}`` body.
"""


class MoodJournalError(Exception):
    status_code = 500
    public_message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(MoodJournalError):
    """A required field is missing or malformed."""

    status_code = 400
    public_message = "Invalid request"


class NotFoundError(MoodJournalError):
    status_code = 404
    public_message = "Not found"


class UpstreamServiceError(MoodJournalError):
    """The chat completion service failed or returned something unusable."""

    status_code = 500
    public_message = "chat server error"


class PersistenceError(MoodJournalError):
    """A database round trip failed."""

    status_code = 500
    public_message = "Server error"
