"""zugferdreader - Extract ZUGFeRD/Factur-X/XRechnung invoices embedded in PDF files."""

from importlib.metadata import version

__version__ = version("zugferdreader")

from .accessor import PdfAccessor
from .core import (
    EmbeddedFile,
    decode_stream,
    extract_embedded_files,
    flatten_name_tree,
)
from .exceptions import (
    MalformedDocument,
    NoEmbeddedFiles,
    NoMatchingAttachment,
    ReferenceResolutionFailure,
    StreamDecodeFailure,
    ValidationError,
    XmlMappingError,
    ZugferdReaderError,
)
from .reader import (
    AttachmentInfo,
    InvoiceReport,
    OutputFormat,
    list_attachments,
    read_invoice,
    read_invoice_file,
    validate_pdf,
)
from .selector import select_attachment
from .xmlmap import xml_to_dict

__all__ = [
    "PdfAccessor",
    "EmbeddedFile",
    "decode_stream",
    "extract_embedded_files",
    "flatten_name_tree",
    "MalformedDocument",
    "NoEmbeddedFiles",
    "NoMatchingAttachment",
    "ReferenceResolutionFailure",
    "StreamDecodeFailure",
    "ValidationError",
    "XmlMappingError",
    "ZugferdReaderError",
    "AttachmentInfo",
    "InvoiceReport",
    "OutputFormat",
    "list_attachments",
    "read_invoice",
    "read_invoice_file",
    "validate_pdf",
    "select_attachment",
    "xml_to_dict",
    "__version__",
]
