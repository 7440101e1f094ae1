# core/errors.py

"""
Error types raised by the relay core
"""

from typing import List, Optional


class VideoRelayException(Exception):
    """base exception for relay-specific errors"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VideoRelayException):
    """raised when creation parameters are rejected before reaching the provider"""

    status_code = 400

    def __init__(self, errors: List[str]):
        super().__init__("Validation error")
        self.errors = list(errors)


class ConfigError(VideoRelayException):
    """raised when the provider credential is not configured"""

    status_code = 503

    def __init__(self, message: str = "OPENAI_API_KEY is not configured"):
        super().__init__(message)


class ProviderError(VideoRelayException):
    """raised when the provider answers with a non-success response"""

    status_code = 502

    def __init__(self, http_status: Optional[int], body: str):
        super().__init__(f"OpenAI API error ({http_status}): {body}")
        self.http_status = http_status
        self.body = body


class ProviderConnectionError(ProviderError):
    """raised when the provider cannot be reached or the response cannot be read"""

    def __init__(self, body: str):
        super().__init__(None, body)
        self.message = f"OpenAI API unreachable: {body}"


class TransientPollError(VideoRelayException):
    """a background status check failed; the job stays pollable"""

    def __init__(self, job_id: str, cause: Exception):
        message = cause.message if isinstance(cause, VideoRelayException) else str(cause)
        super().__init__(message or type(cause).__name__)
        self.job_id = job_id
        self.cause = cause


class JobNotFoundError(VideoRelayException):
    status_code = 404

    def __init__(self, job_id: str):
        super().__init__("Video not found")
        self.job_id = job_id


class JobNotReadyError(VideoRelayException):
    status_code = 400

    def __init__(self, job_id: str):
        super().__init__("Video is not ready yet")
        self.job_id = job_id
