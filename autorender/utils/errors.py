from typing import Optional


class AutorenderError(Exception):
    """Base class for errors raised by the bot."""


class ProtocolError(AutorenderError):
    """A frame from the server could not be understood."""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class RenderRequestError(AutorenderError):
    """The render API refused a submission."""

    def __init__(self, status: int, message: str = "Failed to render file"):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class ApiRequestError(AutorenderError):
    """A request to the video API failed or returned something unexpected."""

    def __init__(self, url: str, status: Optional[int] = None):
        super().__init__(f"Request to {url} failed (status: {status})")
        self.url = url
        self.status = status
