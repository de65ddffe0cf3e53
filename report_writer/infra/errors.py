"""
Error taxonomy for AI Report Writer.

Every error carries the HTTP status the web adapter answers with and a
message that is safe to show to end users.
"""
from typing import Optional


class ReportWriterError(Exception):
    """Base class for all expected failures."""
    status_code = 500
    default_message = "An unexpected error occurred while generating the document."

    def __init__(self, message: Optional[str] = None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


class InputValidationError(ReportWriterError):
    """A required input field is missing or invalid."""
    status_code = 400
    default_message = "Please fill in all required fields."

    def __init__(self, message: Optional[str] = None, fields=None):
        self.fields = list(fields or [])
        super().__init__(message)


class PromptNotFoundError(ReportWriterError):
    status_code = 404
    default_message = "Prompt template not found."

    def __init__(self, prompt_id: str):
        self.prompt_id = prompt_id
        super().__init__(f"Prompt template {prompt_id!r} not found.")


class UpstreamTimeoutError(ReportWriterError):
    status_code = 408
    default_message = (
        "Generation took too long and timed out. "
        "Try shortening the content or submit again."
    )


class UpstreamRateLimitError(ReportWriterError):
    status_code = 429
    default_message = (
        "The API usage limit has been reached. Please wait a moment and try again."
    )


class UpstreamTransportError(ReportWriterError):
    default_message = "The completion service could not be reached. Please try again."


class EmptyResponseError(ReportWriterError):
    default_message = "No response received from the completion service."


class ResponseParseError(ReportWriterError):
    """The model answered, but not with the JSON we asked for.

    ``raw`` keeps the payload for diagnostics; it is never part of
    ``user_message``.
    """
    default_message = "Failed to parse the response from the completion service."

    def __init__(self, raw: str = "", detail: str = ""):
        self.raw = raw
        self.detail = detail
        super().__init__()
