"""Custom voicegate exceptions."""


class TTSError(Exception):
    """Base exception for TTS-related errors."""

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class TTSAuthError(TTSError):
    """Exception raised for authentication failures.

    This typically occurs when:
    - API key is missing or invalid
    - Account has insufficient credits
    - API key permissions are insufficient
    """

    pass


class TTSAPIError(TTSError):
    """Exception raised for API communication errors.

    This typically occurs when:
    - API server is unavailable (5xx errors)
    - Rate limits are exceeded (429 error)
    - Request format is invalid (4xx errors)
    - Network connectivity issues
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class TTSTimeoutError(TTSAPIError):
    """Exception raised when the remote call exceeds its configured timeout."""

    pass


class RecognitionUnsupportedError(TTSError):
    """Exception raised by engines that cannot transcribe audio."""

    pass


class ConfigurationError(ValueError):
    """Exception raised when the gateway configuration is unusable.

    Attributes:
        problems: Human-readable list of every failed check
    """

    def __init__(self, problems: list[str]) -> None:
        super().__init__("Invalid voicegate configuration: " + "; ".join(problems))
        self.problems = problems


class ServiceDisposedError(RuntimeError):
    """Exception raised when a closed pipeline is used again."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} has been closed and cannot be used")
