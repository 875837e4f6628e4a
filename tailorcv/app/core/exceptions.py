"""
Domain exceptions. Each carries the HTTP status the API layer answers with;
messages are safe to show to users (provider error text is logged, never put here).
"""
from typing import Literal


class TailorCVError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(TailorCVError):
    status_code = 400
    default_message = "Invalid input"


class NotFound(TailorCVError):
    status_code = 404
    default_message = "Resume not found"


class UnsupportedFileType(TailorCVError):
    status_code = 415
    default_message = "Unsupported file type. Please upload PDF, PNG, or JPEG."


class EmptyExtraction(TailorCVError):
    status_code = 422
    default_message = "The document could not be processed. The extracted text is empty or too short."


class QuotaExceeded(TailorCVError):
    status_code = 403

    def __init__(self, kind: Literal["resume", "ai_generation"], message: str | None = None):
        self.kind = kind
        if message is None:
            if kind == "resume":
                message = "You've reached your limit of free resumes. Please upgrade to create more."
            else:
                message = "You've reached your limit of free AI generations. Please upgrade to continue."
        super().__init__(message)


class RateLimited(TailorCVError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again in a few moments."


class Unauthorized(TailorCVError):
    # The server's model credentials were rejected; not the caller's fault.
    status_code = 502
    default_message = "The AI service rejected our credentials. Please contact support."


class ServiceUnavailable(TailorCVError):
    status_code = 503
    default_message = "The AI service is currently unavailable. Please try again later."


class ModelError(TailorCVError):
    status_code = 502
    default_message = "Failed to get response from the language model. Please try again."


class InvalidModelOutput(TailorCVError):
    status_code = 502
    default_message = "An error occurred while formatting your resume. Please try again."


class ResumeParsingFailed(TailorCVError):
    status_code = 502
    default_message = "Failed to parse AI response"


class ResumeGenerationFailed(TailorCVError):
    status_code = 500
    default_message = "Failed to generate resume. Please try again or use a different file format."


class ConfigurationError(TailorCVError):
    status_code = 503
    default_message = "Service is not configured"


class BillingError(TailorCVError):
    status_code = 502
    default_message = "Payment provider request failed"
