class ImageUploaderError(Exception):
    """Base error for a failed transfer.

    ``stdout``/``stderr`` carry whatever diagnostic text was captured from the
    conversion command or the remote server. ``stage`` is filled in by the
    pipeline once it knows where the failure happened.
    """

    def __init__(
        self,
        message: str,
        *,
        stdout: str | None = None,
        stderr: str | None = None,
        stage: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.stdout = stdout
        self.stderr = stderr
        self.stage = stage


class ValidationError(ImageUploaderError):
    pass


class NetworkError(ImageUploaderError):
    pass


class RequestTimeoutError(NetworkError):
    pass


class HttpStatusError(ImageUploaderError):
    def __init__(self, message: str, status_code: int, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class ConversionError(ImageUploaderError):
    pass


class ParseError(ImageUploaderError):
    """Upload response is not JSON. Never reaches the caller."""
