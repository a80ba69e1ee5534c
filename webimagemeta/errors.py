"""Exceptions raised while inspecting or rewriting image metadata."""


class ImageMetaError(Exception):
    """Base class for every error raised by this package."""

    prefix = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"


class InvalidFormatError(ImageMetaError, ValueError):
    """The data is not a usable image of the expected format."""

    prefix = "Invalid format"


class ParseError(ImageMetaError, ValueError):
    """The image structure could not be walked."""

    prefix = "Parse error"