"""Custom exception classes for the HumorAI client."""


class HumorAIError(Exception):
    """Base exception for HumorAI errors."""
    pass


class AuthenticationError(HumorAIError):
    """Raised when a bearer credential is required but no session is active."""
    pass


class APIError(HumorAIError):
    """Raised when an API returns an error."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(HumorAIError):
    """Raised when required configuration is missing."""
    pass


class ValidationError(HumorAIError):
    """Raised when input validation fails."""
    pass


class NetworkError(HumorAIError):
    """Raised when network requests fail."""
    pass


class StageFailure(HumorAIError):
    """Raised when a step of the upload pipeline fails."""

    def __init__(self, step: str, status_code: int | None = None, body: str | None = None,
                 reason: str | None = None) -> None:
        self.step = step
        self.status_code = status_code
        self.body = body
        message = f'{step} failed'
        if status_code is not None:
            message += f' ({status_code})'
        detail = body or reason
        if detail:
            message += f': {detail}'
        super().__init__(message)


class VoteMutationFailure(HumorAIError):
    """Raised when a vote insert, update or delete is rejected or never arrives."""
    pass
