"""Domain exceptions mapped onto HTTP error responses."""

from typing import Optional


class TTSError(Exception):
    """Base error carrying the HTTP status and the public message."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(detail or message or self.message)
        if message is not None:
            self.message = message
        self.detail = detail


class MissingParametersError(TTSError):
    """Raised before any vendor call when text or voice id is absent."""

    status_code = 400
    message = "Missing required parameters"


class CatalogUnavailableError(TTSError):
    status_code = 500
    message = "Failed to fetch voices"


class SynthesisFailedError(TTSError):
    status_code = 500
    message = "Failed to synthesize speech"


class CaptureError(TTSError):
    """Base for failures of the local capture pipeline."""

    status_code = 500
    message = "Speech capture failed"


class EngineUnavailableError(CaptureError):
    status_code = 503
    message = "Local speech engine is not available"


class LocalVoiceNotFoundError(CaptureError):
    status_code = 400
    message = "Selected voice not found"


class SpeechEngineError(CaptureError):
    """The engine reported an error event for the utterance."""

    def __init__(self, code: str):
        super().__init__(
            message=f"Speech synthesis error: {code}",
            detail=f"engine error event: {code}",
        )
        self.code = code


class CaptureTimeoutError(CaptureError):
    status_code = 504
    message = "Speech synthesis timed out"


class StorageError(TTSError):
    status_code = 500
    message = "Storage operation failed"


class PayloadTooLargeError(StorageError):
    status_code = 413
    message = "File too large"


class InvalidSignatureError(StorageError):
    status_code = 400
    message = "Invalid or expired signature"


class BlobNotFoundError(StorageError):
    status_code = 404
    message = "Object not found"


class AuthenticationError(TTSError):
    status_code = 401
    message = "Not authenticated"


class AccessDeniedError(TTSError):
    status_code = 403
    message = "You can only access your own files"


class RecordNotFoundError(TTSError):
    status_code = 404
    message = "History item not found"
