from typing import Optional


class ViewerError(Exception):
    """
    Base class for all application-specific exceptions.
    captures the original exception for debugging if needed.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


# --- Input Exceptions ---


class FileNotProvidedError(ViewerError):
    """
    Raised when a load is requested with neither a document id nor a file.
    Maps to HTTP 400.
    """

    pass


# --- Vendor Exceptions (APS Failures) ---


class AccessTokenError(ViewerError):
    """
    Raised when no access token could be obtained or none is available
    for an authenticated call.
    """

    pass


class BucketCreationError(ViewerError):
    """
    Raised when bucket creation returns no bucket key.
    "Already exists" is NOT an error, see BucketOutcome.
    """

    pass


class UploadError(ViewerError):
    """
    Raised when the signed-upload handshake returns unusable data
    (no signed URL, no object id).
    """

    pass


class TranslationJobError(ViewerError):
    """
    Raised when the Model Derivative service refuses to start a job.
    """

    pass


class TranslationError(ViewerError):
    """
    Raised when a translation job completes with a non-success status.
    """

    pass


class TranslationTimeoutError(TranslationError):
    """
    Raised when the poller gives up (max attempts or max duration reached).
    """

    pass


class TranslationCancelledError(TranslationError):
    """
    Raised when the caller aborts a translation that is still being polled.
    """

    pass


# --- Viewer Exceptions ---


class ViewerContainerError(ViewerError):
    """
    Raised when no container element id was given for the viewer widget.
    """

    pass


class WebGLUnavailableError(ViewerError):
    """
    Raised when the viewer widget fails to start (non-zero start code).
    """

    pass


class ViewerNotInitializedError(ViewerError):
    pass


class DocumentLoadError(ViewerError):
    """
    Raised when the manifest behind a document id cannot be fetched.
    """

    pass


class NoViewablesError(ViewerError):
    """
    Raised when a loaded document contains no geometry nodes.
    Maps to HTTP 422.
    """

    pass


class DocumentNotLoadedError(ViewerError):
    pass


# --- Job Exceptions ---


class JobNotFoundError(ViewerError):
    """
    Raised when a user requests a Job ID that doesn't exist in the result backend.
    Maps to HTTP 404.
    """

    pass
