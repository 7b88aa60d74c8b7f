"""Exceptions raised by zugferdreader."""


class ZugferdReaderError(Exception):
    """Base class for all zugferdreader errors."""


class MalformedDocument(ZugferdReaderError):
    """Raised when the input bytes cannot be read as a PDF at all."""


class ReferenceResolutionFailure(ZugferdReaderError):
    """Raised internally when an indirect reference cannot be resolved."""


class StreamDecodeFailure(ZugferdReaderError):
    """Raised internally when a stream payload cannot be decoded."""


class NoEmbeddedFiles(ZugferdReaderError):
    """Raised when a document carries no embedded files."""


class NoMatchingAttachment(ZugferdReaderError):
    """Raised when no embedded file satisfies the selection criterion."""

    def __init__(self, message: str, available: list[str]):
        super().__init__(message)
        self.available = available


class XmlMappingError(ZugferdReaderError):
    """Raised when attachment text is not well-formed XML."""


class ValidationError(ZugferdReaderError):
    """Raised when file validation fails."""
