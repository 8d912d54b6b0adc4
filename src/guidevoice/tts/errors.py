"""Speech subsystem exceptions."""


class SpeechError(Exception):
    """Base exception for speech-delivery errors."""

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(SpeechError):
    """Exception raised when configuration cannot satisfy a request.

    This typically occurs when:
    - Online synthesis is disabled
    - API key is missing
    - No voices are configured or the voice has no provider id
    """

    pass


class NetworkError(SpeechError):
    """Exception raised for remote synthesis failures.

    This typically occurs when:
    - The request times out
    - The API answers with a non-200 status
    - The connection cannot be established
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class ValidationError(SpeechError):
    """Exception raised when input text or returned audio is unusable."""

    pass


class WorkerError(SpeechError):
    """Exception raised when the playback worker fails or goes away."""

    pass


class CacheIOError(SpeechError):
    """Exception raised when the audio cache cannot be written."""

    pass
