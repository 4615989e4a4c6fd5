from typing import Optional


class NameplateError(Exception):
    """Base error carrying the HTTP status and the message shown to the user."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class SubmissionError(NameplateError):
    status_code = 400


class PayloadTooLarge(NameplateError):
    status_code = 413


class ConfigurationError(NameplateError):
    status_code = 500


class GenerationError(NameplateError):
    status_code = 502
